#-------------------------------------------------------------------------
# Copyright (c) Microsoft.  All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#--------------------------------------------------------------------------
import threading


class OperationContext(object):
    '''
    Tracks the wire calls issued on behalf of one logical operation, such as a
    write stream session. Passed to the service methods which increment it
    once for every request they attempt.

    :ivar int request_count:
        The number of requests sent so far, including requests which failed.
    :ivar str last_request_id:
        The x-ms-client-request-id of the most recent request.
    '''

    def __init__(self):
        self._lock = threading.Lock()
        self._request_count = 0
        self.last_request_id = None

    @property
    def request_count(self):
        with self._lock:
            return self._request_count

    def _record_request(self, request_id):
        with self._lock:
            self._request_count += 1
            self.last_request_id = request_id
