# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass
from typing import Any, Optional

ANONYMOUS_USER_NAME = "Anonymous"


@dataclass
class Session:
    """The signed-in user, as reported by Firebase Authentication."""

    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None

    def as_payload(self) -> dict:
        # The UI expects the Firebase JS user field names verbatim.
        return {
            "uid": self.uid,
            "displayName": self.display_name,
            "email": self.email,
            "photoURL": self.photo_url,
        }


@dataclass
class ReviewInput:
    """Fields the UI submits when posting a review."""

    beverage_id: str
    beverage_name: str
    rating: int
    title: str
    content: str
    image_file: Optional[Any] = None


@dataclass
class Review:
    id: str
    user_id: str
    user_name: str
    beverage_id: str
    beverage_name: str
    rating: int
    title: str
    content: str
    created_at: int
    image_url: Optional[str] = None
    likes: int = 0


@dataclass
class BeverageInput:
    """Fields the UI submits when registering a beverage."""

    name: str
    category: str
    alcohol_percentage: Optional[Any] = None
    manufacturer: Optional[str] = None
    description: Optional[str] = None


@dataclass
class Beverage:
    id: str
    name: str
    category: str
    user_id: str
    created_at: int
    updated_at: int
    alcohol_percentage: Optional[float] = None
    manufacturer: Optional[str] = None
    description: Optional[str] = None


@dataclass
class LikeResult:
    success: bool
