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
import logging
import threading
import uuid

from .._error import (
    ConflictError,
    PreconditionFailedError,
    _ERROR_APPEND_OFFSET_MISMATCH,
    _ERROR_MAX_SIZE_CONDITION_NOT_MET,
    _validate_page_aligned,
)
from .models import (
    BlobBlock,
    ContentSettings,
)

logger = logging.getLogger(__name__)


class ChunkResult(object):
    '''
    The outcome of one chunk emission.

    :ivar int offset:
        The blob offset the chunk was written at.
    :ivar int length:
        The number of bytes in the chunk.
    :ivar str etag:
        The ETag returned by the service, if any.
    :ivar int append_offset:
        The offset the service appended the chunk at (append blobs only).
    :ivar str block_id:
        The id of the uncommitted block (block blobs only).
    '''

    def __init__(self, offset, length, etag=None, append_offset=None, block_id=None):
        self.offset = offset
        self.length = length
        self.etag = etag
        self.append_offset = append_offset
        self.block_id = block_id


class _BlobCommitStrategy(object):
    supports_seek = False

    def __init__(self, blob_service, container_name, blob_name, gate,
                 validate_content=False, timeout=None, operation_context=None,
                 content_settings=None, metadata=None, max_connections=1):
        self.blob_service = blob_service
        self.container_name = container_name
        self.blob_name = blob_name
        self.gate = gate
        self.validate_content = validate_content
        self.timeout = timeout
        self.operation_context = operation_context
        self.content_settings = content_settings
        self.metadata = metadata
        self.max_connections = max_connections

    def emit_chunk(self, data, offset):
        raise NotImplementedError()

    def finalize(self, checksum):
        '''
        Page and append blobs are already committed by every write. Only a
        whole blob MD5 needs one more call to store it.
        '''
        if checksum is None or checksum.md5 is None:
            return

        content_settings = self._content_settings_with_md5(checksum.md5)
        condition = self.gate.condition
        resp = self.blob_service.set_blob_properties(
            self.container_name,
            self.blob_name,
            content_settings=content_settings,
            lease_id=condition.lease_id,
            if_match=condition.if_match,
            timeout=self.timeout,
            operation_context=self.operation_context,
        )
        self.gate.adopt_etag(resp.etag)

    def _content_settings_with_md5(self, content_md5):
        settings = self.content_settings or ContentSettings()
        return ContentSettings(
            content_type=settings.content_type,
            content_encoding=settings.content_encoding,
            content_language=settings.content_language,
            content_disposition=settings.content_disposition,
            cache_control=settings.cache_control,
            content_md5=content_md5,
        )


class _BlockBlobCommitStrategy(_BlobCommitStrategy):
    def __init__(self, *args, **kwargs):
        super(_BlockBlobCommitStrategy, self).__init__(*args, **kwargs)
        self._block_prefix = uuid.uuid4().hex[:16]
        self._block_lock = threading.Lock()
        self._block_index = 0
        self._blocks = {}

    @property
    def block_list(self):
        ''' The blocks emitted so far, in write order. '''
        with self._block_lock:
            return [self._blocks[offset] for offset in sorted(self._blocks)]

    def _next_block_id(self, offset):
        with self._block_lock:
            block_id = '{0}-{1:06d}'.format(self._block_prefix, self._block_index)
            self._block_index += 1
            self._blocks[offset] = BlobBlock(block_id)
        return block_id

    def emit_chunk(self, data, offset):
        block_id = self._next_block_id(offset)
        self.blob_service.put_block(
            self.container_name,
            self.blob_name,
            data,
            block_id,
            validate_content=self.validate_content,
            lease_id=self.gate.condition.lease_id,
            timeout=self.timeout,
            operation_context=self.operation_context,
        )
        return ChunkResult(offset, len(data), block_id=block_id)

    def finalize(self, checksum):
        content_settings = self.content_settings
        if checksum is not None and checksum.md5 is not None:
            content_settings = self._content_settings_with_md5(checksum.md5)

        block_list = self.block_list
        logger.debug('Committing %d blocks to %s/%s.',
                     len(block_list), self.container_name, self.blob_name)
        self.blob_service.put_block_list(
            self.container_name,
            self.blob_name,
            block_list,
            content_settings=content_settings,
            metadata=self.metadata,
            timeout=self.timeout,
            operation_context=self.operation_context,
            **self.gate.kwargs()
        )


class _PageBlobCommitStrategy(_BlobCommitStrategy):
    supports_seek = True

    def emit_chunk(self, data, offset):
        _validate_page_aligned('offset', offset)
        _validate_page_aligned('length', len(data))

        condition = self.gate.condition
        resp = self.blob_service.update_page(
            self.container_name,
            self.blob_name,
            data,
            offset,
            offset + len(data) - 1,
            validate_content=self.validate_content,
            lease_id=condition.lease_id,
            if_match=condition.if_match,
            timeout=self.timeout,
            operation_context=self.operation_context,
        )

        self.gate.adopt_etag(resp.etag)
        return ChunkResult(offset, len(data), etag=resp.etag)


class _AppendBlobCommitStrategy(_BlobCommitStrategy):
    def emit_chunk(self, data, offset):
        condition = self.gate.condition
        maxsize = condition.if_max_size_less_than_or_equal
        if maxsize is not None and offset + len(data) > maxsize:
            raise PreconditionFailedError(
                _ERROR_MAX_SIZE_CONDITION_NOT_MET.format(len(data), offset, maxsize), 412)

        resp = self.blob_service.append_block(
            self.container_name,
            self.blob_name,
            data,
            validate_content=self.validate_content,
            maxsize_condition=maxsize,
            appendpos_condition=offset,
            lease_id=condition.lease_id,
            timeout=self.timeout,
            operation_context=self.operation_context,
        )

        if resp.append_offset is not None and resp.append_offset != offset:
            raise ConflictError(_ERROR_APPEND_OFFSET_MISMATCH.format(resp.append_offset, offset), 409)

        return ChunkResult(offset, len(data), etag=resp.etag, append_offset=resp.append_offset)
