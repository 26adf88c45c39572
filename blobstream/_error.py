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
from azure.common import (
    AzureException,
    AzureHttpError,
    AzureConflictHttpError,
    AzureMissingResourceHttpError,
)

_ERROR_VALUE_NONE = '{0} should not be None.'
_ERROR_VALUE_NEGATIVE = '{0} should not be negative.'
_ERROR_VALUE_SHOULD_BE_BYTES = '{0} should be of type bytes.'
_ERROR_VALUE_OUT_OF_RANGE = '{0} ({1}) must be between {2} and {3}.'
_ERROR_STORAGE_MISSING_INFO = \
    'You need to provide an account name, a custom domain or a connection string, ' + \
    'or ask for the development storage emulator.'
_ERROR_PAGE_BLOB_ALIGNMENT = '{0} ({1}) must be aligned to a 512-byte boundary.'
_ERROR_PAGE_BLOB_OUT_OF_RANGE = 'Page range {0}-{1} is outside of the blob ({2} bytes).'
_ERROR_SEEK_OUT_OF_RANGE = 'Cannot seek to {0}: the blob is {1} bytes long.'
_ERROR_UNSUPPORTED_SEEK = '{0} streams do not support seeking.'
_ERROR_INVALID_WHENCE = 'Invalid whence ({0}).'
_ERROR_BUFFER_FULL = 'The chunk buffer is full ({0} bytes).'
_ERROR_STREAM_COMMITTED = 'The stream has already been committed.'
_ERROR_STREAM_CLOSED = 'I/O operation on closed stream.'
_ERROR_CHECKSUM_NOT_POSSIBLE = \
    'A whole blob checksum cannot be calculated for an existing blob because it ' + \
    'would require reading the existing data. Disable store_content_md5 and ' + \
    'store_content_crc64.'
_ERROR_MAX_SIZE_CONDITION_NOT_MET = \
    'Appending {0} bytes at offset {1} would exceed the maximum blob size condition ({2}).'
_ERROR_APPEND_OFFSET_MISMATCH = \
    'The block was appended at offset {0} but offset {1} was expected; ' + \
    'another writer appended to the blob.'
_ERROR_BLOB_ALREADY_EXISTS = 'The specified blob already exists.'
_ERROR_ETAG_MISMATCH = 'The blob ETag ({0}) does not match the If-Match condition ({1}).'


class AlignmentError(ValueError):
    '''
    A page blob offset or length is not aligned to a 512-byte boundary. Raised
    before any request is sent.
    '''


class CapacityExceededError(ValueError):
    '''
    Bytes were appended to a chunk buffer which already reported itself full.
    '''


class StreamStateError(AzureException):
    '''
    The operation is not valid in the current state of the write stream, for
    example writing after the stream was committed.
    '''


class PreconditionFailedError(AzureHttpError):
    '''
    A conditional header (ETag, timestamp, append position or max size) was not
    satisfied. Raised for HTTP 412 and for conditions known to be stale before
    the request is sent.
    '''
    error_code = None


class ConflictError(AzureConflictHttpError):
    '''
    The request conflicts with the current state of the blob (HTTP 409).
    Also raised when another writer appended to the blob concurrently.
    '''
    error_code = None


class NotFoundError(AzureMissingResourceHttpError):
    '''
    The blob does not exist (HTTP 404).
    '''
    error_code = None


class RangeError(AzureHttpError, IndexError):
    '''
    The byte range is not satisfiable (HTTP 416) or a local offset or length is
    out of bounds. status_code is None for local failures.
    '''
    error_code = None


_ERROR_BY_STATUS = {
    304: PreconditionFailedError,
    404: NotFoundError,
    409: ConflictError,
    412: PreconditionFailedError,
    416: RangeError,
}


def _http_error_class(status):
    return _ERROR_BY_STATUS.get(status, AzureHttpError)


def _storage_error_handler(http_error):
    ''' Simple error handler for storage service. '''
    message = str(http_error)
    error_code = None
    if http_error.respheader:
        error_code = http_error.respheader.get('x-ms-error-code')
    if error_code:
        message += '\nErrorCode:' + error_code
    if http_error.respbody:
        message += '\n' + http_error.respbody.decode('utf-8-sig')

    ex = _http_error_class(http_error.status)(message, http_error.status)
    ex.error_code = error_code
    raise ex


def _validate_not_none(param_name, param):
    if param is None:
        raise ValueError(_ERROR_VALUE_NONE.format(param_name))


def _validate_type_bytes(param_name, param):
    if not isinstance(param, (bytes, bytearray, memoryview)):
        raise TypeError(_ERROR_VALUE_SHOULD_BE_BYTES.format(param_name))


def _validate_in_range(param_name, param, low, high):
    if param < low or param > high:
        raise ValueError(_ERROR_VALUE_OUT_OF_RANGE.format(param_name, param, low, high))


def _validate_page_aligned(param_name, param):
    if param % 512 != 0:
        raise AlignmentError(_ERROR_PAGE_BLOB_ALIGNMENT.format(param_name, param))
