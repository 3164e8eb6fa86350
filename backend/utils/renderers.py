from rest_framework.renderers import BaseRenderer


class _FileRenderer(BaseRenderer):
    """Les vues d'export passent déjà les octets du fichier à Response."""

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b""
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        # erreurs DRF (403, 404...) rendues en texte lisible
        if isinstance(data, dict) and "detail" in data:
            return str(data["detail"]).encode("utf-8")
        return str(data).encode("utf-8")


class XLSXRenderer(_FileRenderer):
    media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    format = "xlsx"
    charset = None


class CSVRenderer(_FileRenderer):
    media_type = "text/csv"
    format = "csv"
    charset = "utf-8"
