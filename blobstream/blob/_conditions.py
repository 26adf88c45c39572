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

from .._common_conversion import (
    _datetime_to_utc_string,
    _int_or_none,
    _str_or_none,
)
from .._error import (
    ConflictError,
    PreconditionFailedError,
    _ERROR_BLOB_ALREADY_EXISTS,
    _ERROR_ETAG_MISMATCH,
)
from .models import (
    AccessCondition,
    _BlobTypes,
)


def _format_condition_headers(if_match=None, if_none_match=None, if_modified_since=None,
                              if_unmodified_since=None, maxsize_condition=None,
                              appendpos_condition=None, lease_id=None):
    '''
    Renders access conditions as request headers. Unset conditions map to None
    and are dropped when the request is sent.
    '''
    return {
        'If-Match': _str_or_none(if_match),
        'If-None-Match': _str_or_none(if_none_match),
        'If-Modified-Since': _datetime_to_utc_string(if_modified_since),
        'If-Unmodified-Since': _datetime_to_utc_string(if_unmodified_since),
        'x-ms-blob-condition-maxsize': _int_or_none(maxsize_condition),
        'x-ms-blob-condition-appendpos': _int_or_none(appendpos_condition),
        'x-ms-lease-id': _str_or_none(lease_id),
    }


class ConditionalGate(object):
    '''
    Holds the access condition a write stream was opened with and decides
    which parts of it each request carries.

    The four condition families (ETag, timestamp, max size and append
    position) are independent of each other. When the caller supplied an
    if_match, the gate tracks the blob's ETag as the stream changes it so
    that a single writer keeps passing its own condition.
    '''

    def __init__(self, condition=None):
        self.condition = self.capture_at_open(condition)
        self._lock = threading.Lock()

    @staticmethod
    def capture_at_open(condition):
        '''
        Returns the effective condition for a session: a private copy of the
        caller's condition, or an empty one.

        :param AccessCondition condition:
            The caller's condition, or None.
        :rtype: :class:`~blobstream.blob.models.AccessCondition`
        '''
        if condition is None:
            return AccessCondition()
        return condition._copy()

    @property
    def is_conditional(self):
        return self.condition._is_conditional()

    def validate(self, last_known_etag=None, exists=None):
        '''
        Checks the condition against what is already known about the blob,
        before any bytes are sent.

        :param str last_known_etag:
            The ETag most recently observed for the blob, if any.
        :param bool exists:
            Whether the blob is known to exist. None when unknown.
        '''
        condition = self.condition
        if exists and condition.if_none_match == '*':
            raise ConflictError(_ERROR_BLOB_ALREADY_EXISTS, 409)

        if condition.if_match not in (None, '*') and last_known_etag is not None \
                and last_known_etag != condition.if_match:
            raise PreconditionFailedError(
                _ERROR_ETAG_MISMATCH.format(last_known_etag, condition.if_match), 412)

    def headers(self, append_position=None):
        '''
        Renders the full condition as request headers.

        :param int append_position:
            Overrides the append position condition with the stream's current
            position.
        :rtype: dict
        '''
        condition = self.condition
        if append_position is None:
            append_position = condition.if_append_position_equal
        return _format_condition_headers(
            if_match=condition.if_match,
            if_none_match=condition.if_none_match,
            if_modified_since=condition.if_modified_since,
            if_unmodified_since=condition.if_unmodified_since,
            maxsize_condition=condition.if_max_size_less_than_or_equal,
            appendpos_condition=append_position,
            lease_id=condition.lease_id,
        )

    def kwargs(self):
        ''' The ETag, timestamp and lease conditions as service keyword arguments. '''
        condition = self.condition
        return dict(
            if_match=condition.if_match,
            if_none_match=condition.if_none_match,
            if_modified_since=condition.if_modified_since,
            if_unmodified_since=condition.if_unmodified_since,
            lease_id=condition.lease_id,
        )

    def existence_check_kwargs(self):
        '''
        The conditions for the properties request that probes a block blob at
        open. If-None-Match: * is checked locally against the result instead of
        being sent.
        '''
        kwargs = self.kwargs()
        if kwargs['if_none_match'] == '*':
            kwargs['if_none_match'] = None
        return kwargs

    def for_stream(self, blob_type, etag=None):
        '''
        Returns the gate for the writes which follow a successful open.

        Block blobs keep the whole condition for the final commit. Page blobs
        keep the lease and, if the caller gave an if_match, chain the ETag
        returned by the open. Append blobs keep the lease, the max size and
        the append position.

        :param str blob_type:
            One of the _BlobTypes.
        :param str etag:
            The ETag returned when the blob was created or probed.
        :rtype: :class:`ConditionalGate`
        '''
        condition = self.condition
        if blob_type == _BlobTypes.BlockBlob:
            return ConditionalGate(condition)

        if blob_type == _BlobTypes.PageBlob:
            if_match = etag if condition.if_match is not None else None
            return ConditionalGate(AccessCondition(if_match=if_match, lease_id=condition.lease_id))

        return ConditionalGate(AccessCondition(
            lease_id=condition.lease_id,
            if_max_size_less_than_or_equal=condition.if_max_size_less_than_or_equal,
            if_append_position_equal=condition.if_append_position_equal,
        ))

    def adopt_etag(self, etag):
        ''' Chains the ETag returned by a write into the next if_match. '''
        with self._lock:
            if self.condition.if_match is not None and etag is not None:
                self.condition.if_match = etag
