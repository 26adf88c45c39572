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
import asyncio
import io
import logging
import threading
from concurrent.futures import (
    Future,
    ThreadPoolExecutor,
    wait,
)

from .._constants import _PAGE_ALIGNMENT
from .._error import (
    AlignmentError,
    RangeError,
    StreamStateError,
    _ERROR_INVALID_WHENCE,
    _ERROR_PAGE_BLOB_ALIGNMENT,
    _ERROR_PAGE_BLOB_OUT_OF_RANGE,
    _ERROR_SEEK_OUT_OF_RANGE,
    _ERROR_STREAM_CLOSED,
    _ERROR_STREAM_COMMITTED,
    _ERROR_UNSUPPORTED_SEEK,
    _validate_in_range,
    _validate_page_aligned,
    _validate_type_bytes,
)
from ._buffer import BufferPool
from ._checksum import ChecksumAccumulator

logger = logging.getLogger(__name__)


def _validate_chunk_size(chunk_size, max_size, align_to_page=False):
    _validate_in_range('chunk_size', chunk_size, 1, max_size)
    if align_to_page:
        _validate_page_aligned('chunk_size', chunk_size)
    return chunk_size


class _StreamState(object):
    OPEN = 'open'
    WRITING = 'writing'
    FLUSHING = 'flushing'
    COMMITTING = 'committing'
    CLOSED = 'closed'


class BlobWriteStream(object):
    '''
    A writable, buffered stream onto a single blob. Bytes are accumulated in a
    chunk buffer and sent to the service one chunk at a time by the commit
    strategy of the blob type. Closing the stream commits it.

    Every operation runs on a private single threaded executor, in the order
    it was called. The blocking methods (write, flush, seek, commit, close)
    wait for their operation; the *_async methods return a
    concurrent.futures.Future and accept a callback invoked with that future;
    the a* coroutines await it. Callbacks run on the executor thread and must
    not call the blocking methods of the same stream.

    Instances are created by the open_write method of the blob services.

    :ivar BlobHandle handle:
        The blob this stream writes to.
    :ivar int chunk_size:
        The number of bytes buffered before a chunk is sent.
    '''

    def __init__(self, handle, strategy, chunk_size, position=0, length=None,
                 store_content_md5=False, store_content_crc64=False,
                 buffer_pool=None, operation_context=None):
        self.handle = handle
        self.chunk_size = chunk_size
        self._strategy = strategy
        self._length = length
        self._blob_offset = position
        self._pool = buffer_pool or BufferPool()
        self._buffer = None
        self._checksum = ChecksumAccumulator(md5=store_content_md5, crc64=store_content_crc64)
        self._final_checksum = None
        self._operation_context = operation_context

        self._state = _StreamState.OPEN
        self._committed = False
        self._closing = False
        self._close_future = None
        self._last_exception = None
        self._lock = threading.Lock()

        self._executor = ThreadPoolExecutor(1)
        max_connections = strategy.max_connections
        if max_connections > 1:
            self._emitter = ThreadPoolExecutor(max_connections)
            self._emission_slots = threading.BoundedSemaphore(max_connections)
        else:
            self._emitter = None
            self._emission_slots = None
        self._in_flight = set()

        logger.debug('Opened %s write stream for %s/%s at offset %d, conditions %s.',
                     handle.blob_type, handle.container_name, handle.blob_name, position,
                     {k: v for k, v in strategy.gate.headers().items() if v is not None})

    #----io manners-----------------------------------------------------------

    def readable(self):
        return False

    def writable(self):
        return not self._closing and not self._committed

    def seekable(self):
        return self._strategy.supports_seek

    @property
    def closed(self):
        return self._state == _StreamState.CLOSED

    @property
    def committed(self):
        return self._committed

    @property
    def state(self):
        return self._state

    @property
    def length(self):
        ''' The size of the page blob. None for other blob types. '''
        return self._length

    @property
    def request_count(self):
        ''' The number of requests sent for this stream, opening included. '''
        if self._operation_context is None:
            return 0
        return self._operation_context.request_count

    @property
    def block_list(self):
        ''' The ids of the blocks written so far, in write order (block blobs only). '''
        blocks = getattr(self._strategy, 'block_list', None)
        if blocks is None:
            return None
        return [block.id for block in blocks]

    @property
    def checksum(self):
        '''
        The whole blob :class:`~blobstream.blob._checksum.Checksum` computed at
        commit. None before the stream is committed.
        '''
        return self._final_checksum

    def tell(self):
        '''
        Returns the logical offset of the next byte written. Bytes of a write
        still queued behind other operations are not counted until it runs.
        '''
        with self._lock:
            pending = len(self._buffer) if self._buffer is not None else 0
            return self._blob_offset + pending

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    #----blocking API---------------------------------------------------------

    def write(self, data):
        '''
        Writes the bytes to the stream. A chunk is sent every time the buffer
        fills up.

        :param bytes data:
            The bytes to write. Page blob writes must be a multiple of 512
            bytes long.
        :return: The number of bytes written.
        :rtype: int
        '''
        return self.write_async(data).result()

    def flush(self):
        '''
        Sends any buffered bytes as a short chunk and waits for all chunks in
        flight. Flushing an empty buffer sends nothing.
        '''
        return self.flush_async().result()

    def seek(self, offset, whence=io.SEEK_SET):
        '''
        Moves the write position of a page blob stream. Buffered bytes are
        flushed first when the position changes.

        :param int offset:
            The offset, relative to whence. The target must be 512-byte
            aligned and within the blob.
        :param int whence:
            io.SEEK_SET, io.SEEK_CUR or io.SEEK_END.
        :return: The new absolute position.
        :rtype: int
        '''
        return self.seek_async(offset, whence).result()

    def commit(self):
        '''
        Flushes the stream and commits the blob. After a commit the stream no
        longer accepts writes.
        '''
        return self.commit_async().result()

    def close(self):
        '''
        Commits the stream if it was not committed yet and releases its
        resources. Calling close more than once has no effect.
        '''
        return self.close_async().result()

    #----future API-----------------------------------------------------------

    def write_async(self, data, callback=None):
        _validate_type_bytes('data', data)
        if self._strategy.supports_seek and len(data) % _PAGE_ALIGNMENT != 0:
            raise AlignmentError(_ERROR_PAGE_BLOB_ALIGNMENT.format('length', len(data)))
        self._check_open()
        return self._submit(self._write, bytes(data), callback=callback)

    def flush_async(self, callback=None):
        self._check_open()
        return self._submit(self._flush, callback=callback)

    def seek_async(self, offset, whence=io.SEEK_SET, callback=None):
        if not self._strategy.supports_seek:
            raise io.UnsupportedOperation(_ERROR_UNSUPPORTED_SEEK.format(self.handle.blob_type))
        if whence not in (io.SEEK_SET, io.SEEK_CUR, io.SEEK_END):
            raise ValueError(_ERROR_INVALID_WHENCE.format(whence))
        self._check_open()
        return self._submit(self._seek, offset, whence, callback=callback)

    def commit_async(self, callback=None):
        self._check_open()
        return self._submit(self._commit, callback=callback)

    def close_async(self, callback=None):
        with self._lock:
            future = self._close_future
            queued = future is None
            if queued:
                future = self._close_future = self._executor.submit(self._close)
                self._closing = True

        if queued:
            future.add_done_callback(self._close_done)
        elif future.done() and not future.cancelled():
            # later calls of a finished close have no effect
            future = Future()
            future.set_result(None)
        if callback is not None:
            future.add_done_callback(callback)
        return future

    #----awaitable API--------------------------------------------------------

    async def awrite(self, data):
        return await asyncio.wrap_future(self.write_async(data))

    async def aflush(self):
        return await asyncio.wrap_future(self.flush_async())

    async def aseek(self, offset, whence=io.SEEK_SET):
        return await asyncio.wrap_future(self.seek_async(offset, whence))

    async def acommit(self):
        return await asyncio.wrap_future(self.commit_async())

    async def aclose(self):
        return await asyncio.wrap_future(self.close_async())

    #----operations, run on the executor--------------------------------------

    def _submit(self, operation, *args, **kwargs):
        callback = kwargs.pop('callback', None)
        future = self._executor.submit(operation, *args)
        if callback is not None:
            future.add_done_callback(callback)
        return future

    def _check_open(self):
        if self._closing:
            raise StreamStateError(_ERROR_STREAM_CLOSED)

    def _check_state(self):
        if self._state == _StreamState.CLOSED:
            raise StreamStateError(_ERROR_STREAM_CLOSED)
        if self._committed:
            raise StreamStateError(_ERROR_STREAM_COMMITTED)
        if self._last_exception is not None:
            raise self._last_exception

    def _write(self, data):
        self._check_state()
        if self._length is not None and self.tell() + len(data) > self._length:
            raise RangeError(_ERROR_PAGE_BLOB_OUT_OF_RANGE.format(
                self.tell(), self.tell() + len(data) - 1, self._length), None)

        self._state = _StreamState.WRITING
        view = memoryview(data)
        while len(view):
            if self._buffer is None:
                self._buffer = self._pool.acquire(self.chunk_size)
            accepted = self._buffer.append(view)
            view = view[accepted:]
            if self._buffer.is_full():
                self._dispatch()

        return len(data)

    def _flush(self):
        self._check_state()
        self._flush_internal()

    def _flush_internal(self):
        self._state = _StreamState.FLUSHING
        if self._buffer is not None and len(self._buffer) > 0:
            self._dispatch()
        self._wait_for_emissions()
        self._state = _StreamState.WRITING

    def _seek(self, offset, whence):
        self._check_state()
        if whence == io.SEEK_CUR:
            offset += self.tell()
        elif whence == io.SEEK_END:
            offset += self._length

        if offset < 0 or offset > self._length:
            raise RangeError(_ERROR_SEEK_OUT_OF_RANGE.format(offset, self._length), None)
        _validate_page_aligned('offset', offset)

        if offset != self.tell():
            # a whole blob digest is undefined once the writes are not sequential
            self._checksum.discard()
            self._flush_internal()
            with self._lock:
                self._blob_offset = offset

        return offset

    def _commit(self):
        self._check_state()
        self._flush_internal()

        self._state = _StreamState.COMMITTING
        self._committed = True
        self._final_checksum = self._checksum.finalize()
        self._strategy.finalize(self._final_checksum)
        logger.debug('Committed %s/%s, %d bytes written, %d requests.',
                     self.handle.container_name, self.handle.blob_name,
                     self._blob_offset, self.request_count)

    def _close(self):
        try:
            if not self._committed:
                self._commit()
        finally:
            self._state = _StreamState.CLOSED
            if self._buffer is not None:
                self._buffer.release()
                self._buffer = None
            if self._emitter is not None:
                self._emitter.shutdown(wait=True)
            self._executor.shutdown(wait=False)

    def _close_done(self, future):
        if not future.cancelled():
            return
        # a close cancelled before it ran leaves the stream open for the next close
        logger.debug('Close of %s/%s was cancelled before it ran.',
                     self.handle.container_name, self.handle.blob_name)
        with self._lock:
            if self._close_future is future:
                self._close_future = None
                self._closing = False

    #----chunk emission-------------------------------------------------------

    def _dispatch(self):
        # the drained bytes move from the buffer to the blob offset atomically for tell
        with self._lock:
            buffer, self._buffer = self._buffer, None
            try:
                data = buffer.drain()
            finally:
                buffer.release()

            offset = self._blob_offset
            self._blob_offset += len(data)
        self._checksum.update(data)

        if self._emitter is None:
            self._emit(data, offset)
            return

        # blocks while max_connections chunks are in flight
        self._emission_slots.acquire()
        future = self._emitter.submit(self._emit_in_background, data, offset)
        with self._lock:
            self._in_flight.add(future)
        future.add_done_callback(self._emission_done)

    def _emit(self, data, offset):
        try:
            result = self._strategy.emit_chunk(data, offset)
        except Exception as ex:
            logger.debug('Chunk at offset %d of %s/%s failed: %s.',
                         offset, self.handle.container_name, self.handle.blob_name, ex)
            with self._lock:
                if self._last_exception is None:
                    self._last_exception = ex
            raise

        logger.debug('Sent chunk of %d bytes at offset %d of %s/%s.',
                     result.length, result.offset, self.handle.container_name, self.handle.blob_name)
        return result

    def _emit_in_background(self, data, offset):
        try:
            return self._emit(data, offset)
        finally:
            self._emission_slots.release()

    def _emission_done(self, future):
        with self._lock:
            self._in_flight.discard(future)

    def _wait_for_emissions(self):
        with self._lock:
            in_flight = list(self._in_flight)
        if in_flight:
            wait(in_flight)
        if self._last_exception is not None:
            raise self._last_exception
