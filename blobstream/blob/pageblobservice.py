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
from .._common_conversion import (
    _get_content_md5,
    _int_or_none,
    _str_or_none,
)
from .._constants import (
    SERVICE_HOST_BASE,
    DEFAULT_PROTOCOL,
    _MAX_PAGE_RANGE_SIZE,
)
from .._error import (
    _ERROR_CHECKSUM_NOT_POSSIBLE,
    _validate_not_none,
    _validate_page_aligned,
)
from .._http import HTTPRequest
from .._serialization import (
    _add_metadata_headers,
    _get_request_body_bytes_only,
)
from ..models import OperationContext
from ._baseblobservice import _BaseBlobService
from ._conditions import (
    ConditionalGate,
    _format_condition_headers,
)
from ._deserialization import (
    _parse_page_properties,
)
from ._serialization import (
    _get_path,
    _validate_and_format_range_headers,
)
from ._upload_chunking import _PageBlobCommitStrategy
from .models import _BlobTypes
from .writestream import _validate_chunk_size


class PageBlobService(_BaseBlobService):
    '''
    Page blobs are a collection of 512-byte pages optimized for random read and
    write operations. To create a page blob, you initialize the page blob and
    specify the maximum size the page blob will grow. To add or update the
    contents of a page blob, you write a page or pages by specifying an offset
    and a range that align to 512-byte page boundaries.

    :ivar int MAX_PAGE_SIZE: 
        The size of the pages put by open_write if no chunk_size is given.
        Defaults to 4MB.
    '''

    def __init__(self, account_name=None, sas_token=None, is_emulated=False,
                 protocol=DEFAULT_PROTOCOL, endpoint_suffix=SERVICE_HOST_BASE,
                 custom_domain=None, request_session=None, connection_string=None,
                 buffer_pool=None):
        '''
        :param str account_name:
            The storage account name. This is used to construct the storage
            endpoint. It is required unless a connection string is given, or if
            a custom domain is used.
        :param str sas_token:
             A shared access signature token appended to every request.
        :param bool is_emulated:
            Whether to use the emulator. Defaults to False.
        :param str protocol:
            The protocol to use for requests. Defaults to https.
        :param str endpoint_suffix:
            The host base component of the url, minus the account name.
        :param str custom_domain:
            The custom domain to use.
        :param requests.Session request_session:
            The session object to use for http requests.
        :param str connection_string:
            If specified, this will override all other parameters besides 
            request session.
        :param BufferPool buffer_pool:
            The pool write streams take their chunk buffers from.
        '''
        self.blob_type = _BlobTypes.PageBlob
        super(PageBlobService, self).__init__(
            account_name, sas_token, is_emulated, protocol, endpoint_suffix,
            custom_domain, request_session, connection_string, buffer_pool)

    def create_blob(
        self, container_name, blob_name, content_length, content_settings=None,
        metadata=None, lease_id=None, if_modified_since=None, if_unmodified_since=None,
        if_match=None, if_none_match=None, timeout=None, operation_context=None):
        '''
        Creates a new Page Blob, or replaces an existing blob with an empty
        one of the given size.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of blob to create or update.
        :param int content_length:
            Required. This header specifies the maximum size
            for the page blob, up to 1 TB. The page blob size must be aligned
            to a 512-byte boundary.
        :param ~blobstream.blob.models.ContentSettings content_settings:
            ContentSettings object used to set properties on the blob.
        :param metadata:
            Name-value pairs associated with the blob as metadata.
        :type metadata: dict(str, str)
        :param str lease_id:
            Required if the blob has an active lease.
        :param datetime if_modified_since:
            Perform the operation only if the blob was modified since this time.
        :param datetime if_unmodified_since:
            Perform the operation only if the blob was not modified since this time.
        :param str if_match:
            An ETag value, or the wildcard character (*).
        :param str if_none_match:
            An ETag value, or the wildcard character (*). Specify the wildcard
            character (*) to perform the operation only if the blob does not exist.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :param OperationContext operation_context:
            Records the request when given.
        :return: ETag and last modified properties for the new Page Blob
        :rtype: :class:`~blobstream.blob.models.PageBlobProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('content_length', content_length)
        _validate_page_aligned('content_length', content_length)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {'timeout': _int_or_none(timeout)}
        request.headers = _format_condition_headers(
            if_match=if_match,
            if_none_match=if_none_match,
            if_modified_since=if_modified_since,
            if_unmodified_since=if_unmodified_since,
            lease_id=lease_id,
        )
        request.headers['x-ms-blob-type'] = _str_or_none(self.blob_type)
        request.headers['x-ms-blob-content-length'] = _str_or_none(content_length)
        _add_metadata_headers(metadata, request)
        if content_settings is not None:
            request.headers.update(content_settings._to_headers())

        response = self._perform_request(request, operation_context)
        return _parse_page_properties(response)

    def update_page(
        self, container_name, blob_name, page, start_range, end_range,
        validate_content=False, lease_id=None, if_modified_since=None,
        if_unmodified_since=None, if_match=None, if_none_match=None,
        timeout=None, operation_context=None):
        '''
        Updates a range of pages.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param bytes page:
            Content of the page.
        :param int start_range:
            Start of byte range to use for writing to a section of the blob.
            Pages must be aligned with 512-byte boundaries, the start offset
            must be a modulus of 512 and the end offset must be a modulus of
            512-1. Examples of valid byte ranges are 0-511, 512-1023, etc.
        :param int end_range:
            End of byte range to use for writing to a section of the blob.
            Pages must be aligned with 512-byte boundaries, the start offset
            must be a modulus of 512 and the end offset must be a modulus of
            512-1. Examples of valid byte ranges are 0-511, 512-1023, etc.
        :param bool validate_content:
            If true, calculates an MD5 hash of the page content. The storage 
            service checks the hash of the content that has arrived
            with the hash that was sent.
        :param str lease_id:
            Required if the blob has an active lease.
        :param datetime if_modified_since:
            Perform the operation only if the blob was modified since this time.
        :param datetime if_unmodified_since:
            Perform the operation only if the blob was not modified since this time.
        :param str if_match:
            An ETag value, or the wildcard character (*).
        :param str if_none_match:
            An ETag value, or the wildcard character (*).
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :param OperationContext operation_context:
            Records the request when given.
        :return: ETag, last modified and sequence number of the Page Blob
        :rtype: :class:`~blobstream.blob.models.PageBlobProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('page', page)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'page',
            'timeout': _int_or_none(timeout),
        }
        request.headers = _format_condition_headers(
            if_match=if_match,
            if_none_match=if_none_match,
            if_modified_since=if_modified_since,
            if_unmodified_since=if_unmodified_since,
            lease_id=lease_id,
        )
        request.headers['x-ms-page-write'] = 'update'
        _validate_and_format_range_headers(
            request,
            start_range,
            end_range,
            align_to_page=True)
        request.body = _get_request_body_bytes_only('page', page)

        if validate_content:
            computed_md5 = _get_content_md5(request.body)
            request.headers['Content-MD5'] = _str_or_none(computed_md5)

        response = self._perform_request(request, operation_context)
        return _parse_page_properties(response)

    def open_write(
        self, container_name, blob_name, content_length=None, chunk_size=None,
        store_content_md5=False, store_content_crc64=False, validate_content=False,
        access_condition=None, content_settings=None, metadata=None, timeout=None):
        '''
        Opens a stream for writing to the page blob. Every chunk is written
        through to the blob as a page range; committing only stores the whole
        blob MD5, if requested.

        If content_length is given the blob is created (or replaced) with that
        size. Otherwise the blob must exist and its properties are fetched to
        learn its size.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of the blob.
        :param int content_length:
            The size of the page blob to create, a multiple of 512. If None
            the page blob must already exist.
        :param int chunk_size:
            The size of each page range written, a multiple of 512 up to 4MB.
            Defaults to MAX_PAGE_SIZE.
        :param bool store_content_md5:
            If true, the MD5 of the content written is computed and stored as
            the blob's Content-MD5 at commit. Only possible for a new blob.
        :param bool store_content_crc64:
            If true, the CRC64 of the content written is computed. Only
            possible for a new blob.
        :param bool validate_content:
            If true, every page range is sent with the MD5 of its content.
        :param ~blobstream.blob.models.AccessCondition access_condition:
            The conditions the blob must meet when the stream is opened.
        :param ~blobstream.blob.models.ContentSettings content_settings:
            ContentSettings object used to set properties on a new blob.
        :param metadata:
            Name-value pairs set on a new blob.
        :type metadata: dict(str, str)
        :param int timeout:
            The timeout parameter is expressed in seconds, for each request.
        :return: A stream to write the blob's content to.
        :rtype: :class:`~blobstream.blob.writestream.BlobWriteStream`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        if chunk_size is None:
            chunk_size = self.MAX_PAGE_SIZE
        chunk_size = _validate_chunk_size(chunk_size, _MAX_PAGE_RANGE_SIZE, align_to_page=True)

        operation_context = OperationContext()
        gate = ConditionalGate(access_condition)
        if content_length is not None:
            _validate_page_aligned('content_length', content_length)
            resp = self.create_blob(
                container_name,
                blob_name,
                content_length,
                content_settings=content_settings,
                metadata=metadata,
                timeout=timeout,
                operation_context=operation_context,
                **gate.kwargs()
            )
            etag = resp.etag
        else:
            if store_content_md5 or store_content_crc64:
                raise ValueError(_ERROR_CHECKSUM_NOT_POSSIBLE)

            blob = self.get_blob_properties(
                container_name,
                blob_name,
                timeout=timeout,
                operation_context=operation_context,
                **gate.kwargs()
            )
            etag = blob.properties.etag
            content_length = blob.properties.content_length

        return self._new_write_stream(
            container_name,
            blob_name,
            _BlobTypes.PageBlob,
            _PageBlobCommitStrategy,
            gate.for_stream(_BlobTypes.PageBlob, etag),
            chunk_size,
            operation_context,
            length=content_length,
            store_content_md5=store_content_md5,
            store_content_crc64=store_content_crc64,
            validate_content=validate_content,
            content_settings=content_settings,
            timeout=timeout,
        )
