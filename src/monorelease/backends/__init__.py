# Copyright 2026 Google LLC
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
#
# SPDX-License-Identifier: Apache-2.0

"""Protocol-based backend shim layer for monorelease.

All repository plumbing goes through the injectable :class:`VCS`
protocol so the release pipeline can run against a fake in tests.
"""

from monorelease.backends._run import CommandResult, require_ok, run_command
from monorelease.backends.vcs import VCS, DiffSummary, GitCLIBackend, LogEntry

__all__ = [
    'VCS',
    'CommandResult',
    'DiffSummary',
    'GitCLIBackend',
    'LogEntry',
    'require_ok',
    'run_command',
]
