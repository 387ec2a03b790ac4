# ----------------------------- #
# ⚠️ Jenis Kesalahan MINILOK
# ----------------------------- #


class MinilokError(Exception):
    """Kesalahan dasar aplikasi."""


class NotFoundError(MinilokError):
    """Kegiatan dengan id yang diminta tidak ada."""


class ValidationError(MinilokError):
    """Isian form wajib kosong atau tidak valid; form tidak dikirim."""


class StorageCorruption(MinilokError):
    """Data lokal tersimpan rusak; dipulihkan dengan dataset kosong."""


class BackendError(MinilokError):
    """Kegagalan jaringan atau penulisan pada penyimpanan (remote maupun file lokal)."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ExportError(MinilokError):
    """Ekspor PDF gagal; tidak ada file parsial yang dihasilkan."""
