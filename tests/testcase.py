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
import inspect
import os.path
import random
import unittest
import uuid
import zlib

import tests.settings_fake as fake_settings
from tests.fake_service import FakeBlobEndpoint

# logging is not enabled by default because it pollutes the CI logs
# uncommenting the following two lines make debugging much easier
# import logging
# logging.basicConfig(format='%(asctime)s %(name)-20s %(levelname)-5s %(message)s', level=logging.DEBUG)

try:
    import tests.settings_real as settings
except ImportError:
    settings = None


class TestMode(object):
    none = 'None'.lower() # run against the in-process fake endpoint
    run_live_no_record = 'RunLiveNoRecord'.lower() # run tests against live storage

    @staticmethod
    def need_real_credentials(mode):
        return mode == TestMode.run_live_no_record


class StorageTestCase(unittest.TestCase):

    def setUp(self):
        self.settings = settings
        self.fake_settings = fake_settings

        if settings is None:
            self.test_mode = TestMode.none
        else:
            self.test_mode = self.settings.TEST_MODE.lower() or TestMode.none

        if self.test_mode == TestMode.none:
            self.settings = self.fake_settings

        # requests made by the services of a test go to this endpoint unless
        # the test runs live
        self.endpoint = FakeBlobEndpoint()

        # example of qualified test name:
        # test_block_blob_stream.test_write_in_chunks
        _, filename = os.path.split(inspect.getsourcefile(type(self)))
        name, _ = os.path.splitext(filename)
        self.qualified_test_name = '{0}.{1}'.format(
            name,
            self._testMethodName,
        )

    def is_live(self):
        return TestMode.need_real_credentials(self.test_mode)

    def get_resource_name(self, prefix=''):
        # Append a suffix to the name, based on the fully qualified test name
        # We use a checksum of the test name so that each test gets different
        # resource names, but each test will get the same name on repeat runs.
        if self.is_live():
            return prefix + str(uuid.uuid4()).replace('-', '')
        else:
            checksum = zlib.adler32(self.qualified_test_name.encode()) & 0xffffffff
            return '{}{}'.format(prefix, hex(checksum)[2:])

    def get_random_bytes(self, size):
        if self.is_live():
            rand = random.Random()
        else:
            checksum = zlib.adler32(self.qualified_test_name.encode()) & 0xffffffff
            rand = random.Random(checksum)
        result = bytearray(size)
        for i in range(size):
            result[i] = int(rand.random()*255)
        return bytes(result)

    @staticmethod
    def _set_test_proxy(service, settings):
        if settings.USE_PROXY:
            service.set_proxy(
                settings.PROXY_HOST,
                settings.PROXY_PORT,
                settings.PROXY_USER,
                settings.PROXY_PASSWORD,
            )

    def _create_storage_service(self, service_class, settings, **kwargs):
        if not self.is_live():
            kwargs.setdefault('request_session', self.endpoint)

        if settings.CONNECTION_STRING:
            service = service_class(connection_string=settings.CONNECTION_STRING, **kwargs)
        elif settings.IS_EMULATED:
            service = service_class(is_emulated=True, **kwargs)
        else:
            service = service_class(
                settings.STORAGE_ACCOUNT_NAME,
                sas_token=settings.SAS_TOKEN or None,
                protocol=settings.PROTOCOL,
                **kwargs
            )
        self._set_test_proxy(service, settings)
        return service

    def skip_if_live(self):
        ''' Skips tests that inspect the fake endpoint. '''
        if self.is_live():
            raise unittest.SkipTest('The test inspects the requests received by the fake endpoint.')
