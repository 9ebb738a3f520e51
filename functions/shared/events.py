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
from enum import StrEnum
from typing import Any


class OutboundPort(StrEnum):
    """Names of the UI ports that receive messages from the backend."""

    RECEIVE_USER = "receiveUser"
    RECEIVE_ERROR = "receiveError"
    REVIEW_SAVED = "reviewSaved"
    RECEIVE_REVIEWS = "receiveReviews"
    BEVERAGE_SAVED = "beverageSaved"
    RECEIVE_BEVERAGES = "receiveBeverages"
    REVIEW_LIKED = "reviewLiked"


@dataclass
class OutboundEvent:
    """A single message pushed back to the UI."""

    port: OutboundPort
    payload: Any = None

    def as_dict(self) -> dict:
        return {"port": str(self.port), "payload": self.payload}
