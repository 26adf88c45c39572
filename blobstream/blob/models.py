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
from .._common_conversion import _str_or_none


class _BlobTypes(object):
    '''Blob type options'''

    '''Block blob type.'''
    BlockBlob = 'BlockBlob'

    '''Page blob type.'''
    PageBlob = 'PageBlob'

    '''Append blob type.'''
    AppendBlob = 'AppendBlob'


class BlobHandle(object):

    '''
    Identifies the blob a write stream targets. Owns no bytes.

    :ivar str container_name:
        Name of the container holding the blob.
    :ivar str blob_name:
        Name of the blob.
    :ivar str blob_type:
        One of BlockBlob, PageBlob or AppendBlob.
    '''

    __slots__ = ('_container_name', '_blob_name', '_blob_type')

    def __init__(self, container_name, blob_name, blob_type):
        self._container_name = container_name
        self._blob_name = blob_name
        self._blob_type = blob_type

    @property
    def container_name(self):
        return self._container_name

    @property
    def blob_name(self):
        return self._blob_name

    @property
    def blob_type(self):
        return self._blob_type

    def __eq__(self, other):
        if not isinstance(other, BlobHandle):
            return NotImplemented
        return (self._container_name, self._blob_name, self._blob_type) == \
               (other._container_name, other._blob_name, other._blob_type)

    def __hash__(self):
        return hash((self._container_name, self._blob_name, self._blob_type))

    def __repr__(self):
        return 'BlobHandle({!r}, {!r}, {!r})'.format(
            self._container_name, self._blob_name, self._blob_type)


class Blob(object):

    ''' Blob class'''

    def __init__(self, name=None, content=None, props=None, metadata=None):
        self.name = name
        self.content = content
        self.properties = props or BlobProperties()
        self.metadata = metadata


class BlobProperties(object):

    ''' Blob Properties '''

    def __init__(self):
        self.blob_type = None
        self.last_modified = None
        self.etag = None
        self.content_length = None
        self.content_crc64 = None
        self.append_blob_committed_block_count = None
        self.page_blob_sequence_number = None
        self.content_settings = ContentSettings()
        self.lease = LeaseProperties()


class ContentSettings(object):

    '''
    Used to store the content settings of a blob.

    :ivar str content_type:
        The content type specified for the blob. If no content type was
        specified, the default content type is application/octet-stream. 
    :ivar str content_encoding:
        If the content_encoding has previously been set
        for the blob, that value is stored.
    :ivar str content_language:
        If the content_language has previously been set
        for the blob, that value is stored.
    :ivar str content_disposition:
        content_disposition conveys additional information about how to
        process the response payload, and also can be used to attach
        additional metadata.
    :ivar str cache_control:
        If the cache_control has previously been set for
        the blob, that value is stored.
    :ivar str content_md5:
        If the content_md5 has been set for the blob, this response
        header is stored so that the client can check for message content
        integrity.
    '''

    def __init__(
        self, content_type=None, content_encoding=None,
        content_language=None, content_disposition=None,
        cache_control=None, content_md5=None):
        
        self.content_type = content_type
        self.content_encoding = content_encoding
        self.content_language = content_language
        self.content_disposition = content_disposition
        self.cache_control = cache_control
        self.content_md5 = content_md5

    def _to_headers(self):
        return {
            'x-ms-blob-cache-control': _str_or_none(self.cache_control),
            'x-ms-blob-content-type': _str_or_none(self.content_type),
            'x-ms-blob-content-disposition': _str_or_none(self.content_disposition),
            'x-ms-blob-content-md5': _str_or_none(self.content_md5),
            'x-ms-blob-content-encoding': _str_or_none(self.content_encoding),
            'x-ms-blob-content-language': _str_or_none(self.content_language),
        }


class LeaseProperties(object):

    '''Blob Lease Properties'''

    def __init__(self):
        self.status = None
        self.state = None
        self.duration = None


class ResourceProperties(object):

    '''
    Returned by the write operations which change the blob.

    :ivar str etag:
        The ETag contains a value that you can use to perform operations
        conditionally.
    :ivar datetime last_modified:
        A datetime object representing the last time the blob was modified.
    '''

    def __init__(self):
        self.last_modified = None
        self.etag = None


class PageBlobProperties(ResourceProperties):

    '''
    Returned by create_blob and update_page on a page blob.

    :ivar int sequence_number:
        The current sequence number of the page blob.
    '''

    def __init__(self):
        super(PageBlobProperties, self).__init__()
        self.sequence_number = None


class AppendBlockProperties(ResourceProperties):

    '''
    Returned by append_block.

    :ivar int append_offset:
        Position to start next append.
    :ivar int committed_block_count:
        Number of committed append blocks.
    '''

    def __init__(self):
        super(AppendBlockProperties, self).__init__()
        self.append_offset = None
        self.committed_block_count = None


class BlobBlockState(object):
    '''Block blob block types'''

    '''Uncommitted blocks'''
    Uncommitted = 'Uncommitted'

    '''Committed blocks'''
    Committed = 'Committed'

    '''Latest blocks'''
    Latest = 'Latest'


class BlobBlock(object):

    '''
    BlockBlob Block class.

    :ivar str id:
        Block id.
    :ivar str state:
        Block state.
        Possible valuse: committed|uncommitted
    :ivar int size:
        Block size in bytes.
    '''

    def __init__(self, id=None, state=BlobBlockState.Latest):
        self.id = id
        self.state = state

    def _set_size(self, size):
        self.size = size


class BlobBlockList(object):

    ''' BlobBlockList class '''

    def __init__(self):
        self.committed_blocks = list()
        self.uncommitted_blocks = list()


class AccessCondition(object):

    '''
    Preconditions attached to a write stream when it is opened. Every write the
    stream sends is gated on them; a failed condition surfaces as
    PreconditionFailedError, or ConflictError for if_none_match='*' on a blob
    that exists.

    :ivar str if_match:
        An ETag value, or the wildcard character (*). The write succeeds only
        if the blob's ETag matches the value specified.
    :ivar str if_none_match:
        An ETag value, or the wildcard character (*). With '*' the write
        succeeds only if the blob does not exist.
    :ivar datetime if_modified_since:
        The write succeeds only if the blob has been modified since this time.
        Naive datetimes are assumed to be UTC.
    :ivar datetime if_unmodified_since:
        The write succeeds only if the blob has not been modified since this
        time. Naive datetimes are assumed to be UTC.
    :ivar int if_max_size_less_than_or_equal:
        Append blobs only. An append fails if it would grow the blob beyond
        this size.
    :ivar int if_append_position_equal:
        Append blobs only. The offset at which the first append must land.
    :ivar str lease_id:
        Required if the blob has an active lease.
    '''

    def __init__(self, if_match=None, if_none_match=None, if_modified_since=None,
                 if_unmodified_since=None, if_max_size_less_than_or_equal=None,
                 if_append_position_equal=None, lease_id=None):
        self.if_match = if_match
        self.if_none_match = if_none_match
        self.if_modified_since = if_modified_since
        self.if_unmodified_since = if_unmodified_since
        self.if_max_size_less_than_or_equal = if_max_size_less_than_or_equal
        self.if_append_position_equal = if_append_position_equal
        self.lease_id = lease_id

    def _copy(self, **overrides):
        values = dict(
            if_match=self.if_match,
            if_none_match=self.if_none_match,
            if_modified_since=self.if_modified_since,
            if_unmodified_since=self.if_unmodified_since,
            if_max_size_less_than_or_equal=self.if_max_size_less_than_or_equal,
            if_append_position_equal=self.if_append_position_equal,
            lease_id=self.lease_id,
        )
        values.update(overrides)
        return AccessCondition(**values)

    def _is_conditional(self):
        return any(value is not None for value in (
            self.if_match,
            self.if_none_match,
            self.if_modified_since,
            self.if_unmodified_since,
            self.if_max_size_less_than_or_equal,
            self.if_append_position_equal,
        ))

    @staticmethod
    def generate_if_not_exists_condition():
        ''' Returns a condition which succeeds only if the blob does not exist. '''
        return AccessCondition(if_none_match='*')

    @staticmethod
    def generate_if_match_condition(etag):
        ''' Returns a condition which succeeds only if the blob's ETag matches. '''
        return AccessCondition(if_match=etag)
