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
from io import BytesIO
from xml.etree import ElementTree as ETree

from .._common_conversion import (
    _encode_base64,
    _str,
)
from .._error import (
    _validate_not_none,
    _validate_page_aligned,
    _ERROR_VALUE_NEGATIVE,
)


def _get_path(container_name=None, blob_name=None):
    '''
    Creates the path to access a blob resource.

    container_name:
        Name of container.
    blob_name:
        The path to the blob.
    '''
    if container_name and blob_name:
        return '/{0}/{1}'.format(
            _str(container_name),
            _str(blob_name))
    elif container_name:
        return '/{0}'.format(_str(container_name))
    else:
        return '/'


def _validate_and_format_range_headers(request, start_range, end_range=None, align_to_page=False):
    '''
    Adds the x-ms-range header for an inclusive byte range. Without an
    end_range the range runs to the end of the blob.
    '''
    _validate_not_none('start_range', start_range)
    if start_range < 0:
        raise ValueError(_ERROR_VALUE_NEGATIVE.format('start_range'))
    if end_range is None:
        request.headers['x-ms-range'] = 'bytes={0}-'.format(start_range)
        return
    if end_range < start_range:
        raise ValueError(_ERROR_VALUE_NEGATIVE.format('end_range - start_range'))

    # Page ranges must be 512 aligned
    if align_to_page:
        _validate_page_aligned('start_range', start_range)
        _validate_page_aligned('end_range + 1', end_range + 1)

    request.headers['x-ms-range'] = 'bytes={0}-{1}'.format(start_range, end_range)


def _convert_block_list_to_xml(block_id_list):
    '''
    <?xml version="1.0" encoding="utf-8"?>
    <BlockList>
      <Committed>first-base64-encoded-block-id</Committed>
      <Uncommitted>second-base64-encoded-block-id</Uncommitted>
      <Latest>third-base64-encoded-block-id</Latest>
    </BlockList>

    Convert a block list to xml to send.

    block_id_list:
        A list of BlobBlock containing the block ids and block state that are used in put_block_list.
    Only get block from latest blocks.
    '''
    if block_id_list is None:
        return ''

    block_list_element = ETree.Element('BlockList')

    for block in block_id_list:
        if block.id is None:
            raise ValueError("All blocks in block list need to have valid block ids.")
        id = _str(_encode_base64(block.id))
        ETree.SubElement(block_list_element, block.state).text = id

    # Add xml declaration and serialize
    with BytesIO() as stream:
        ETree.ElementTree(block_list_element).write(stream, xml_declaration=True, encoding='utf-8', method='xml')
        output = stream.getvalue()

    return output
