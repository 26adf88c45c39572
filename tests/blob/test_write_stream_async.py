# coding: utf-8

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
import threading
import unittest
from concurrent.futures import Future

from blobstream import (
    AlignmentError,
    StreamStateError,
)
from blobstream.blob import (
    AppendBlobService,
    BlockBlobService,
    PageBlobService,
)
from tests.testcase import StorageTestCase

# ------------------------------------------------------------------------------
TEST_BLOB_PREFIX = 'blob'
CHUNK_SIZE = 1024


# ------------------------------------------------------------------------------

class StorageWriteStreamAsyncTest(StorageTestCase):

    def setUp(self):
        super(StorageWriteStreamAsyncTest, self).setUp()
        self.skip_if_live()

        self.bbs = self._create_storage_service(BlockBlobService, self.settings)
        self.pbs = self._create_storage_service(PageBlobService, self.settings)
        self.abs = self._create_storage_service(AppendBlobService, self.settings)
        self.container_name = self.get_resource_name('utcontainer')

    # --Helpers-----------------------------------------------------------------
    def _get_blob_reference(self):
        return self.get_resource_name(TEST_BLOB_PREFIX)

    def assertBlobEqual(self, container_name, blob_name, expected_data):
        actual_data = self.bbs.get_blob_to_bytes(container_name, blob_name)
        self.assertEqual(actual_data.content, expected_data)

    # --Test cases for futures ----------------------------------------------------
    def test_write_async_returns_future(self):
        # Arrange
        blob_name = self._get_blob_reference()
        data = self.get_random_bytes(3 * CHUNK_SIZE)
        stream = self.bbs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)

        # Act
        futures = [stream.write_async(data[i:i + 512]) for i in range(0, len(data), 512)]
        futures.append(stream.close_async())
        results = [future.result() for future in futures]

        # Assert
        self.assertTrue(all(isinstance(future, Future) for future in futures))
        self.assertEqual(results, [512] * 6 + [None])
        self.assertBlobEqual(self.container_name, blob_name, data)

    def test_operations_run_in_call_order(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bbs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)

        # Act
        stream.write_async(b'one ')
        stream.flush_async()
        stream.write_async(b'two ')
        stream.write_async(b'three')
        stream.commit_async()
        stream.close_async().result()

        # Assert
        self.assertBlobEqual(self.container_name, blob_name, b'one two three')
        self.assertEqual(len(stream.block_list), 2)

    def test_callbacks(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bbs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)
        completed = []
        done = threading.Event()

        def on_write(future):
            completed.append(('write', future.result()))

        def on_close(future):
            completed.append(('close', future.exception()))
            done.set()

        # Act
        stream.write_async(self.get_random_bytes(1500), callback=on_write)
        stream.close_async(callback=on_close)
        done.wait(10)

        # Assert
        self.assertEqual(completed, [('write', 1500), ('close', None)])

    def test_callback_receives_failure(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.pbs.open_write(self.container_name, blob_name, content_length=1024,
                                     chunk_size=CHUNK_SIZE)
        failures = []
        done = threading.Event()

        def on_seek(future):
            failures.append(future.exception())
            done.set()

        # Act
        stream.seek_async(4096, callback=on_seek)
        done.wait(10)

        # Assert
        self.assertEqual(len(failures), 1)
        self.assertIsInstance(failures[0], IndexError)
        stream.close()

    def test_close_async_twice(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bbs.open_write(self.container_name, blob_name)

        # Act
        first = stream.close_async()
        second = stream.close_async()

        # Assert
        self.assertIsNone(second.result())
        self.assertIsNone(first.result())
        self.assertTrue(stream.closed)

    def test_cancelled_close_leaves_stream_open(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bbs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)
        started = threading.Event()
        release = threading.Event()

        def hold_block(method, path, query, headers):
            if query.get('comp') == 'block':
                started.set()
                release.wait(10)

        self.endpoint.on_request = hold_block
        first = stream.write_async(b'x' * CHUNK_SIZE)
        second = stream.write_async(b'y' * 100)
        started.wait(10)

        # Act
        close = stream.close_async()
        cancelled = close.cancel()
        release.set()
        self.endpoint.on_request = None
        stream.close()

        # Assert
        self.assertTrue(cancelled)
        self.assertEqual(first.result(), CHUNK_SIZE)
        self.assertEqual(second.result(), 100)
        self.assertTrue(stream.committed)
        self.assertTrue(stream.closed)
        self.assertBlobEqual(self.container_name, blob_name, b'x' * CHUNK_SIZE + b'y' * 100)

    def test_write_async_after_cancelled_close(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bbs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)
        release = threading.Event()

        def hold_block(method, path, query, headers):
            if query.get('comp') == 'block':
                release.wait(10)

        self.endpoint.on_request = hold_block
        stream.write_async(b'a' * CHUNK_SIZE)
        stream.close_async().cancel()

        # Act
        late = stream.write_async(b'b' * 10)
        release.set()
        self.endpoint.on_request = None
        stream.close()

        # Assert
        self.assertEqual(late.result(), 10)
        self.assertBlobEqual(self.container_name, blob_name, b'a' * CHUNK_SIZE + b'b' * 10)

    def test_tell_while_chunk_in_flight(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bbs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)
        started = threading.Event()
        release = threading.Event()

        def hold_block(method, path, query, headers):
            if query.get('comp') == 'block':
                started.set()
                release.wait(10)

        self.endpoint.on_request = hold_block

        # Act
        future = stream.write_async(b'z' * (CHUNK_SIZE + 24))
        started.wait(10)
        in_flight = stream.tell()
        release.set()
        future.result()

        # Assert
        self.assertEqual(in_flight, CHUNK_SIZE)
        self.assertEqual(stream.tell(), CHUNK_SIZE + 24)
        self.endpoint.on_request = None
        stream.close()

    def test_write_async_after_close_fails(self):
        blob_name = self._get_blob_reference()
        stream = self.bbs.open_write(self.container_name, blob_name)
        stream.close_async()

        with self.assertRaises(StreamStateError):
            stream.write_async(b'late')

    def test_unaligned_write_async_fails_synchronously(self):
        blob_name = self._get_blob_reference()
        stream = self.pbs.open_write(self.container_name, blob_name, content_length=1024)

        with self.assertRaises(AlignmentError):
            stream.write_async(b'x' * 100)

        stream.close()

    # --Test cases for coroutines -------------------------------------------------
    def test_awrite_and_aclose(self):
        # Arrange
        blob_name = self._get_blob_reference()
        data = self.get_random_bytes(2500)
        stream = self.bbs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)

        async def write_blob():
            written = await stream.awrite(data[:1000])
            written += await stream.awrite(data[1000:])
            await stream.aflush()
            await stream.acommit()
            await stream.aclose()
            return written

        # Act
        written = asyncio.run(write_blob())

        # Assert
        self.assertEqual(written, len(data))
        self.assertTrue(stream.closed)
        self.assertBlobEqual(self.container_name, blob_name, data)

    def test_async_with(self):
        # Arrange
        blob_name = self._get_blob_reference()
        data = self.get_random_bytes(2 * CHUNK_SIZE)

        async def write_blob():
            stream = self.abs.open_write(self.container_name, blob_name, create_new=True,
                                         chunk_size=CHUNK_SIZE)
            async with stream:
                await stream.awrite(data)
            return stream

        # Act
        stream = asyncio.run(write_blob())

        # Assert
        self.assertTrue(stream.closed)
        self.assertEqual(stream.request_count, 3)
        self.assertBlobEqual(self.container_name, blob_name, data)

    def test_aseek(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.pbs.open_write(self.container_name, blob_name, content_length=2048,
                                     chunk_size=CHUNK_SIZE)

        async def write_blob():
            await stream.aseek(1024)
            await stream.awrite(b'\x05' * 512)
            await stream.aclose()

        # Act
        asyncio.run(write_blob())

        # Assert
        self.assertBlobEqual(self.container_name, blob_name, bytes(1024) + b'\x05' * 512 + bytes(512))

    def test_concurrent_streams(self):
        # Arrange
        names = ['{}{}'.format(self._get_blob_reference(), i) for i in range(4)]
        payloads = [self.get_random_bytes(3000)[i:] for i in range(4)]

        async def write_blob(name, data):
            stream = self.bbs.open_write(self.container_name, name, chunk_size=CHUNK_SIZE)
            async with stream:
                for i in range(0, len(data), 500):
                    await stream.awrite(data[i:i + 500])

        async def write_all():
            await asyncio.gather(*[write_blob(n, d) for n, d in zip(names, payloads)])

        # Act
        asyncio.run(write_all())

        # Assert
        for name, data in zip(names, payloads):
            self.assertBlobEqual(self.container_name, name, data)
        self.assertEqual(self.bbs.buffer_pool.outstanding_buffer_count, 0)


# ------------------------------------------------------------------------------
if __name__ == '__main__':
    unittest.main()
