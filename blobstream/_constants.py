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
import platform

__author__ = 'Microsoft Corp. <ptvshelp@microsoft.com>'
__version__ = '0.1.0'

# x-ms-version for storage service.
X_MS_VERSION = '2017-04-17'

# UserAgent string sample: 'blobstream/0.1.0 (Python CPython 3.11.4; Linux 6.1.0)'
_USER_AGENT_STRING = 'blobstream/{} (Python {} {}; {} {})'.format(
    __version__,
    platform.python_implementation(),
    platform.python_version(),
    platform.system(),
    platform.release())

# Live ServiceClient URLs
SERVICE_HOST_BASE = 'core.windows.net'
DEFAULT_PROTOCOL = 'https'

# Development ServiceClient URLs
DEV_BLOB_HOST = '127.0.0.1:10000'

# Default credentials for Development Storage Service
DEV_ACCOUNT_NAME = 'devstoreaccount1'

# Socket timeout in seconds
_SOCKET_TIMEOUT = 20

# Page blobs are addressed in 512 byte pages
_PAGE_ALIGNMENT = 512

_MB = 1024 * 1024

# Default stream write size for every blob type
_DEFAULT_WRITE_CHUNK_SIZE = 4 * _MB

# Upper bounds for a single wire operation
_MAX_BLOCK_SIZE = 100 * _MB
_MAX_PAGE_RANGE_SIZE = 4 * _MB
_MAX_APPEND_BLOCK_SIZE = 4 * _MB
