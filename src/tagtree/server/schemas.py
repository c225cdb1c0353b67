# Copyright 2026 Pennyworth Technologies, Inc.
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


"""Pydantic schemas for tag tree API responses."""

from __future__ import annotations

from pydantic import BaseModel
from typing import List, Union


class TagTreeNode(BaseModel):
    id: Union[int, str]
    name: str
    children: List[TagTreeNode] = []


class TagTreeResponse(BaseModel):
    data: List[TagTreeNode]


class StatusOutput(BaseModel):
    status: str
    version: str


TagTreeNode.model_rebuild()
