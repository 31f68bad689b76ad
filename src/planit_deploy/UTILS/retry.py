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
Fixed-interval polling shared by every readiness wait.
"""
import time
from typing import Callable

from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_fixed


def poll(probe: Callable[[], bool],
         interval: float,
         max_attempts: int,
         sleep: Callable[[float], None] = time.sleep) -> bool:
    """
    Calls ``probe`` until it returns True or ``max_attempts`` calls have been made,
    sleeping ``interval`` seconds between calls.

    Args:
        probe: Returns True once the awaited condition holds. Exceptions propagate.
        interval: Seconds between attempts. There is no backoff.
        max_attempts: Upper bound on probe calls.
        sleep: Sleep function, replaceable in tests.

    Returns:
        True on the first successful probe, False once attempts are exhausted.
    """
    if max_attempts < 1:
        return False

    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda ok: not ok),
        retry_error_callback=lambda retry_state: False,
        sleep=sleep,
        reraise=True,
    )
    return bool(retrying(probe))
