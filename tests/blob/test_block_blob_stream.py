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
import random
import threading
import time
import unittest

from azure.common import AzureException

from blobstream import (
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
    StreamStateError,
)
from blobstream.blob import (
    AccessCondition,
    BlockBlobService,
    ContentSettings,
)
from blobstream.blob.models import BlobBlockState
from tests.testcase import StorageTestCase

# ------------------------------------------------------------------------------
TEST_BLOB_PREFIX = 'blob'
CHUNK_SIZE = 1024


# ------------------------------------------------------------------------------

class StorageBlockBlobStreamTest(StorageTestCase):

    def setUp(self):
        super(StorageBlockBlobStreamTest, self).setUp()
        self.skip_if_live()

        self.bs = self._create_storage_service(BlockBlobService, self.settings)
        self.container_name = self.get_resource_name('utcontainer')

    # --Helpers-----------------------------------------------------------------
    def _get_blob_reference(self):
        return self.get_resource_name(TEST_BLOB_PREFIX)

    def _create_blob(self, data=b''):
        blob_name = self._get_blob_reference()
        return blob_name, self.endpoint.add_blob(self.container_name, blob_name, 'BlockBlob', data)

    def assertBlobEqual(self, container_name, blob_name, expected_data):
        actual_data = self.bs.get_blob_to_bytes(container_name, blob_name)
        self.assertEqual(actual_data.content, expected_data)

    # --Test cases for block blob write streams ----------------------------------
    def test_request_counts(self):
        # Arrange
        blob_name = self._get_blob_reference()
        data = self.get_random_bytes(4 * 512)
        stream = self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)
        counts = []

        # Act
        stream.write(data[0:512])
        stream.write(data[512:1024])
        stream.write(data[1024:1536])
        counts.append(stream.request_count)
        stream.flush()
        counts.append(stream.request_count)
        stream.flush()
        counts.append(stream.request_count)
        stream.write(data[1536:2048])
        counts.append(stream.request_count)
        stream.commit()
        counts.append(stream.request_count)

        # Assert
        self.assertEqual(counts, [1, 2, 2, 2, 4])
        self.assertBlobEqual(self.container_name, blob_name, data)
        self.assertEqual(len(self.endpoint.requests_for(comp='block')), 3)
        self.assertEqual(len(self.endpoint.requests_for(comp='blocklist')), 1)

    def test_nothing_visible_before_commit(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)

        # Act
        stream.write(self.get_random_bytes(3000))
        stream.flush()

        # Assert
        self.assertFalse(self.bs.exists(self.container_name, blob_name))
        stream.close()
        self.assertTrue(self.bs.exists(self.container_name, blob_name))

    def test_write_large_in_one_call(self):
        # Arrange
        blob_name = self._get_blob_reference()
        data = self.get_random_bytes(10 * CHUNK_SIZE + 17)

        # Act
        with self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE) as stream:
            written = stream.write(data)

        # Assert
        self.assertEqual(written, len(data))
        self.assertTrue(stream.closed)
        self.assertTrue(stream.committed)
        self.assertEqual(len(stream.block_list), 11)
        self.assertBlobEqual(self.container_name, blob_name, data)

    def test_block_list_matches_service(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)

        # Act
        stream.write(self.get_random_bytes(3 * CHUNK_SIZE))
        stream.close()
        block_list = self.bs.get_block_list(self.container_name, blob_name, 'all')

        # Assert
        self.assertEqual([block.id for block in block_list.committed_blocks], stream.block_list)
        self.assertEqual(len(block_list.uncommitted_blocks), 0)
        for block in block_list.committed_blocks:
            self.assertEqual(block.state, BlobBlockState.Committed)
            self.assertEqual(block.size, CHUNK_SIZE)
        self.assertEqual(len(set(stream.block_list)), 3)

    def test_empty_commit_creates_empty_blob(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)

        # Act
        stream.close()

        # Assert
        self.assertEqual(stream.request_count, 1)
        blob = self.bs.get_blob_properties(self.container_name, blob_name)
        self.assertEqual(blob.properties.content_length, 0)
        self.assertEqual(blob.properties.blob_type, 'BlockBlob')

    def test_replaces_existing_blob(self):
        # Arrange
        blob_name, _ = self._create_blob(b'old content')
        data = self.get_random_bytes(1500)

        # Act
        with self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE) as stream:
            stream.write(data)

        # Assert
        self.assertBlobEqual(self.container_name, blob_name, data)

    def test_store_content_md5(self):
        # Arrange
        blob_name = self._get_blob_reference()
        data = self.get_random_bytes(2500)

        # Act
        with self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE,
                                store_content_md5=True, store_content_crc64=True) as stream:
            stream.write(data)

        # Assert
        blob = self.bs.get_blob_properties(self.container_name, blob_name)
        self.assertIsNotNone(stream.checksum.md5)
        self.assertIsNotNone(stream.checksum.crc64)
        self.assertEqual(blob.properties.content_settings.content_md5, stream.checksum.md5)
        self.assertEqual(stream.request_count, 4)

    def test_checksum_is_none_before_commit(self):
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name, store_content_md5=True)

        stream.write(b'abc')

        self.assertIsNone(stream.checksum)
        stream.close()
        self.assertIsNotNone(stream.checksum.md5)

    def test_content_settings_and_metadata(self):
        # Arrange
        blob_name = self._get_blob_reference()
        content_settings = ContentSettings(content_type='text/plain', content_language='en')
        metadata = {'hello': 'world', 'number': '42'}

        # Act
        with self.bs.open_write(self.container_name, blob_name, content_settings=content_settings,
                                metadata=metadata) as stream:
            stream.write(b'hello world')

        # Assert
        blob = self.bs.get_blob_properties(self.container_name, blob_name)
        self.assertEqual(blob.properties.content_settings.content_type, 'text/plain')
        self.assertEqual(blob.properties.content_settings.content_language, 'en')
        self.assertEqual(blob.metadata, metadata)

    def test_validate_content(self):
        # Arrange
        blob_name = self._get_blob_reference()

        # Act
        with self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE,
                                validate_content=True) as stream:
            stream.write(self.get_random_bytes(2048))

        # Assert
        for _, _, _, headers in self.endpoint.requests_for(comp='block'):
            self.assertIn('Content-MD5', headers)

    def test_parallel_blocks_keep_order(self):
        # Arrange
        blob_name = self._get_blob_reference()
        data = self.get_random_bytes(16 * CHUNK_SIZE + 100)
        rand = random.Random(7)

        def delay(method, path, query, headers):
            if query.get('comp') == 'block':
                time.sleep(rand.random() / 100)

        self.endpoint.on_request = delay

        # Act
        with self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE,
                                max_connections=4, store_content_md5=True) as stream:
            for i in range(0, len(data), 700):
                stream.write(data[i:i + 700])

        # Assert
        self.assertBlobEqual(self.container_name, blob_name, data)
        self.assertEqual(len(stream.block_list), 17)
        self.assertEqual(self.bs.buffer_pool.outstanding_buffer_count, 0)

    def test_parallel_blocks_are_bounded(self):
        # Arrange
        blob_name = self._get_blob_reference()
        lock = threading.Lock()
        in_flight = [0, 0]

        def track(method, path, query, headers):
            if query.get('comp') != 'block':
                return
            with lock:
                in_flight[0] += 1
                in_flight[1] = max(in_flight[1], in_flight[0])
            time.sleep(0.01)
            with lock:
                in_flight[0] -= 1

        self.endpoint.on_request = track

        # Act
        with self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE,
                                max_connections=2) as stream:
            stream.write(self.get_random_bytes(8 * CHUNK_SIZE))

        # Assert
        self.assertLessEqual(in_flight[1], 2)

    def test_buffers_are_released(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)

        # Act
        stream.write(self.get_random_bytes(1500))
        outstanding_while_open = self.bs.buffer_pool.outstanding_buffer_count
        stream.close()

        # Assert
        self.assertEqual(outstanding_while_open, 1)
        self.assertEqual(self.bs.buffer_pool.outstanding_buffer_count, 0)

    def test_tell(self):
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)

        stream.write(self.get_random_bytes(1500))

        self.assertEqual(stream.tell(), 1500)
        stream.close()

    def test_seek_is_unsupported(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name)

        # Act
        with self.assertRaises(OSError):
            stream.seek(0)

        # Assert
        self.assertFalse(stream.seekable())
        self.assertFalse(stream.readable())
        self.assertTrue(stream.writable())
        stream.close()

    def test_write_after_commit_fails(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name)
        stream.write(b'abc')
        stream.commit()

        # Act
        with self.assertRaises(StreamStateError):
            stream.write(b'def')
        with self.assertRaises(StreamStateError):
            stream.commit()

        # Assert
        self.assertFalse(stream.writable())
        stream.close()
        self.assertBlobEqual(self.container_name, blob_name, b'abc')

    def test_write_after_close_fails(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name)
        stream.close()

        # Act
        with self.assertRaises(StreamStateError):
            stream.write(b'abc')
        with self.assertRaises(StreamStateError):
            stream.flush()

        # Assert
        self.assertTrue(stream.closed)

    def test_close_twice(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name)
        stream.write(b'abc')

        # Act
        stream.close()
        stream.close()

        # Assert
        self.assertEqual(stream.request_count, 2)

    def test_write_text_fails(self):
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name)

        with self.assertRaises(TypeError):
            stream.write(u'text')
        stream.close()

    def test_invalid_chunk_size(self):
        blob_name = self._get_blob_reference()

        with self.assertRaises(ValueError):
            self.bs.open_write(self.container_name, blob_name, chunk_size=0)
        with self.assertRaises(ValueError):
            self.bs.open_write(self.container_name, blob_name, chunk_size=101 * 1024 * 1024)
        with self.assertRaises(ValueError):
            self.bs.open_write(self.container_name, blob_name, max_connections=0)

    def test_failed_block_fails_stream(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)

        def fail(method, path, query, headers):
            if query.get('comp') == 'block':
                raise IOError('connection reset')

        self.endpoint.on_request = fail

        # Act
        with self.assertRaises(AzureException):
            stream.write(self.get_random_bytes(CHUNK_SIZE))
        self.endpoint.on_request = None
        with self.assertRaises(AzureException):
            stream.write(b'more')
        with self.assertRaises(AzureException):
            stream.close()

        # Assert
        self.assertTrue(stream.closed)
        self.assertFalse(self.bs.exists(self.container_name, blob_name))
        self.assertEqual(self.bs.buffer_pool.outstanding_buffer_count, 0)

    def test_put_block_on_page_blob_fails(self):
        # Arrange
        blob_name = self._get_blob_reference()
        self.endpoint.add_blob(self.container_name, blob_name, 'PageBlob', bytes(512))
        stream = self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE)

        # Act
        with self.assertRaises(ConflictError) as e:
            stream.write(self.get_random_bytes(CHUNK_SIZE))

        # Assert
        self.assertEqual(e.exception.status_code, 409)
        self.assertEqual(e.exception.error_code, 'InvalidBlobType')

    # --Test cases for access conditions ------------------------------------------
    def test_if_none_match_on_missing_blob(self):
        # Arrange
        blob_name = self._get_blob_reference()
        data = self.get_random_bytes(1500)

        # Act
        with self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE,
                                access_condition=AccessCondition.generate_if_not_exists_condition()) as stream:
            stream.write(data)

        # Assert
        self.assertEqual(stream.request_count, 4)
        self.assertBlobEqual(self.container_name, blob_name, data)
        head = self.endpoint.requests_for(method='HEAD')[0]
        self.assertNotIn('If-None-Match', head[3])

    def test_if_none_match_on_existing_blob_fails_at_open(self):
        # Arrange
        blob_name, _ = self._create_blob(b'existing')

        # Act
        with self.assertRaises(ConflictError):
            self.bs.open_write(self.container_name, blob_name,
                               access_condition=AccessCondition.generate_if_not_exists_condition())

        # Assert
        self.assertEqual(len(self.endpoint.requests_for(comp='block')), 0)

    def test_if_none_match_with_concurrent_create_fails_at_close(self):
        # Arrange
        blob_name = self._get_blob_reference()
        stream = self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE,
                                    access_condition=AccessCondition.generate_if_not_exists_condition())
        stream.write(self.get_random_bytes(1500))

        # Act
        self.endpoint.add_blob(self.container_name, blob_name, 'BlockBlob', b'winner')
        with self.assertRaises(ConflictError) as e:
            stream.close()

        # Assert
        self.assertEqual(e.exception.status_code, 409)
        self.assertTrue(stream.closed)
        self.assertBlobEqual(self.container_name, blob_name, b'winner')

    def test_if_match(self):
        # Arrange
        blob_name, blob = self._create_blob(b'existing')
        data = self.get_random_bytes(1500)

        # Act
        with self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE,
                                access_condition=AccessCondition.generate_if_match_condition(blob.etag)) as stream:
            stream.write(data)

        # Assert
        self.assertBlobEqual(self.container_name, blob_name, data)

    def test_if_match_fails_at_open(self):
        # Arrange
        blob_name, _ = self._create_blob(b'existing')

        # Act
        with self.assertRaises(PreconditionFailedError) as e:
            self.bs.open_write(self.container_name, blob_name,
                               access_condition=AccessCondition.generate_if_match_condition('"0x8DFFFF"'))

        # Assert
        self.assertEqual(e.exception.status_code, 412)

    def test_if_match_on_missing_blob_fails_at_open(self):
        blob_name = self._get_blob_reference()

        with self.assertRaises(NotFoundError):
            self.bs.open_write(self.container_name, blob_name,
                               access_condition=AccessCondition.generate_if_match_condition('"0x8DFFFF"'))

    def test_if_match_with_concurrent_change_fails_at_close(self):
        # Arrange
        blob_name, blob = self._create_blob(b'existing')
        stream = self.bs.open_write(self.container_name, blob_name,
                                    access_condition=AccessCondition.generate_if_match_condition(blob.etag))
        stream.write(b'mine')

        # Act
        self.endpoint.add_blob(self.container_name, blob_name, 'BlockBlob', b'theirs')
        with self.assertRaises(PreconditionFailedError):
            stream.close()

        # Assert
        self.assertBlobEqual(self.container_name, blob_name, b'theirs')

    def test_lease_is_sent_with_every_block(self):
        # Arrange
        blob_name = self._get_blob_reference()

        # Act
        with self.bs.open_write(self.container_name, blob_name, chunk_size=CHUNK_SIZE,
                                access_condition=AccessCondition(lease_id='lease-id')) as stream:
            stream.write(self.get_random_bytes(2 * CHUNK_SIZE))

        # Assert
        self.assertEqual(stream.request_count, 3)
        for _, _, _, headers in self.endpoint.requests:
            self.assertEqual(headers['x-ms-lease-id'], 'lease-id')

    def test_get_missing_blob(self):
        blob_name = self._get_blob_reference()

        with self.assertRaises(NotFoundError) as e:
            self.bs.get_blob_properties(self.container_name, blob_name)

        self.assertEqual(e.exception.status_code, 404)


# ------------------------------------------------------------------------------
if __name__ == '__main__':
    unittest.main()
