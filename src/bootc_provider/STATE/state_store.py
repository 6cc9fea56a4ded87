# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
JSON state file recording the attributes of created resources.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

STATE_VERSION = 1


class StateStore:
    """
    Maps resource addresses (``<type>.<name>``) to their stored attributes.
    """

    def __init__(self, state_file: str):
        """
        Args:
            state_file: Path of the JSON state file. Created on first save.
        """
        self.state_file = Path(state_file)
        self._state = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.state_file.exists():
            return {"version": STATE_VERSION, "resources": {}}
        with open(self.state_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if data.get("version") != STATE_VERSION:
            raise ValueError(
                f"Unsupported state version {data.get('version')!r} in {self.state_file}"
            )
        data.setdefault("resources", {})
        return data

    def save(self) -> None:
        """Writes the state atomically."""
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.state_file.with_name(self.state_file.name + ".tmp")
        with open(tmp, 'w', encoding='utf-8') as f:
            json.dump(self._state, f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp, self.state_file)

    def get(self, address: str) -> Optional[Dict[str, Any]]:
        return self._state["resources"].get(address)

    def put(self, address: str, attributes: Dict[str, Any]) -> None:
        self._state["resources"][address] = attributes

    def remove(self, address: str) -> None:
        self._state["resources"].pop(address, None)

    def addresses(self) -> List[str]:
        return sorted(self._state["resources"])
