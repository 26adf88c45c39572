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

from .._error import (
    CapacityExceededError,
    _ERROR_BUFFER_FULL,
    _validate_in_range,
    _validate_type_bytes,
)


class BufferPool(object):
    '''
    Hands out ChunkBuffers and keeps count of the ones not yet released.
    Shared across streams; the count is guarded by a lock.
    '''

    def __init__(self):
        self._lock = threading.Lock()
        self._outstanding = 0

    @property
    def outstanding_buffer_count(self):
        with self._lock:
            return self._outstanding

    def acquire(self, capacity):
        '''
        Returns an empty ChunkBuffer holding at most capacity bytes.

        :param int capacity:
            The number of bytes the buffer accepts before it is full.
        :rtype: :class:`ChunkBuffer`
        '''
        buffer = ChunkBuffer(capacity, self)
        with self._lock:
            self._outstanding += 1
        return buffer

    def release(self, buffer):
        '''
        Returns a buffer to the pool. Releasing a buffer twice is a no-op.
        '''
        with self._lock:
            if buffer._released:
                return
            buffer._released = True
            self._outstanding -= 1


class ChunkBuffer(object):
    '''
    A fixed capacity byte accumulator for the bytes written since the last
    chunk was emitted.
    '''

    def __init__(self, capacity, pool=None):
        _validate_in_range('capacity', capacity, 1, float('inf'))
        self.capacity = capacity
        self._pool = pool
        self._data = bytearray()
        self._released = False

    def __len__(self):
        return len(self._data)

    @property
    def remaining(self):
        return self.capacity - len(self._data)

    def is_full(self):
        return len(self._data) >= self.capacity

    def append(self, data):
        '''
        Copies as much of data as fits into the buffer.

        :param bytes data:
            The bytes to accumulate.
        :return: The number of bytes accepted.
        :rtype: int
        '''
        _validate_type_bytes('data', data)
        if self.is_full() and len(data) > 0:
            raise CapacityExceededError(_ERROR_BUFFER_FULL.format(self.capacity))

        accepted = min(self.remaining, len(data))
        self._data += memoryview(data)[:accepted]
        return accepted

    def drain(self):
        '''
        Returns the buffered bytes and resets the buffer to empty.

        :rtype: bytes
        '''
        data = bytes(self._data)
        self._data = bytearray()
        return data

    def release(self):
        self._data = bytearray()
        if self._pool is not None:
            self._pool.release(self)
        else:
            self._released = True
