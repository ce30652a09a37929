import json

from rest_framework import renderers


class _FileRenderer(renderers.BaseRenderer):
    charset = None

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        # error payloads (403, 400) still need a body
        return json.dumps(data, default=str).encode('utf-8')


class CSVRenderer(_FileRenderer):
    media_type = 'text/csv'
    format = 'csv'


class XLSXRenderer(_FileRenderer):
    media_type = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    format = 'xlsx'
