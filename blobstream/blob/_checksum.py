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
import struct

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes

from .._common_conversion import _encode_base64
from .._error import _validate_type_bytes

# Azure Storage CRC64, reflected form of polynomial 0x9A6C9329AC4BC9B5
_CRC64_POLY = 0x9A6C9329AC4BC9B5
_CRC64_MASK = 0xFFFFFFFFFFFFFFFF


def _make_crc64_table(poly):
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ poly
            else:
                crc >>= 1
        table.append(crc)
    return table


_CRC64_TABLE = _make_crc64_table(_CRC64_POLY)


def _crc64_update(crc, data):
    crc = ~crc & _CRC64_MASK
    table = _CRC64_TABLE
    for byte in data:
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return ~crc & _CRC64_MASK


def _encode_crc64(value):
    return _encode_base64(struct.pack('<Q', value))


class Checksum(object):
    '''
    Whole blob digests computed by a write stream.

    :ivar str md5:
        Base64 of the 16 byte MD5 digest, as sent in Content-MD5. None when
        MD5 was not requested.
    :ivar str crc64:
        Base64 of the 8 little-endian bytes of the CRC64, as sent in
        x-ms-content-crc64. None when CRC64 was not requested.
    :ivar int crc64_value:
        The CRC64 as an integer.
    '''

    def __init__(self, md5=None, crc64_value=None):
        self.md5 = md5
        self.crc64_value = crc64_value
        self.crc64 = None if crc64_value is None else _encode_crc64(crc64_value)

    def __repr__(self):
        return 'Checksum(md5={!r}, crc64={!r})'.format(self.md5, self.crc64)


class ChecksumAccumulator(object):
    '''
    Incrementally computes the MD5 and/or CRC64 of every byte handed to it in
    order. Not thread-safe; one accumulator belongs to one stream.
    '''

    def __init__(self, md5=False, crc64=False):
        self._md5 = hashes.Hash(hashes.MD5(), backend=default_backend()) if md5 else None
        self._crc64 = 0 if crc64 else None
        self._finalized = None

    @property
    def enabled(self):
        return self._md5 is not None or self._crc64 is not None

    def update(self, data):
        _validate_type_bytes('data', data)
        if self._finalized is not None:
            raise ValueError('Checksum already finalized.')
        if self._md5 is not None:
            self._md5.update(bytes(data))
        if self._crc64 is not None:
            self._crc64 = _crc64_update(self._crc64, data)

    def finalize(self):
        '''
        Returns the digests of everything written so far. May be called more
        than once; later calls return the same result.

        :rtype: :class:`Checksum`
        '''
        if self._finalized is None:
            md5 = _encode_base64(self._md5.finalize()) if self._md5 is not None else None
            self._finalized = Checksum(md5, self._crc64)
        return self._finalized

    def discard(self):
        ''' Drops all state. finalize() then reports no digests. '''
        self._md5 = None
        self._crc64 = None
        self._finalized = None
