import logging
import os
from dataclasses import dataclass
from typing import Optional

import streamlit as st
from streamlit.errors import StreamlitAPIException

logger = logging.getLogger(__name__)

SECRETS_SECTION = "minilok"
ENV_PREFIX = "MINILOK_"

BACKEND_LOCAL = "local"
BACKEND_REMOTE = "remote"


@dataclass(frozen=True)
class Settings:
    backend: str = BACKEND_LOCAL
    db_path: str = "minilok_data.db"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    http_timeout: float = 10.0
    log_level: str = "INFO"

    @property
    def use_remote(self):
        return self.backend == BACKEND_REMOTE


def _read_secrets():
    # File secrets.toml boleh tidak ada (mode lokal)
    try:
        if SECRETS_SECTION in st.secrets:
            return dict(st.secrets[SECRETS_SECTION])
    except (FileNotFoundError, StreamlitAPIException):
        logger.debug("secrets.toml tidak ditemukan, memakai variabel lingkungan")
    return {}


def load_settings(secrets=None, environ=None) -> Settings:
    """Membaca pengaturan dari st.secrets[minilok], lalu variabel lingkungan MINILOK_*."""
    secrets = _read_secrets() if secrets is None else secrets
    environ = os.environ if environ is None else environ

    def _get(name, default=None):
        if name in secrets and secrets[name] not in (None, ""):
            return secrets[name]
        return environ.get(ENV_PREFIX + name.upper(), default)

    backend = str(_get("backend", BACKEND_LOCAL)).strip().lower()
    if backend not in (BACKEND_LOCAL, BACKEND_REMOTE):
        logger.warning("Backend '%s' tidak dikenal, memakai penyimpanan lokal", backend)
        backend = BACKEND_LOCAL

    return Settings(
        backend=backend,
        db_path=str(_get("db_path", Settings.db_path)),
        supabase_url=_get("supabase_url"),
        supabase_key=_get("supabase_key"),
        http_timeout=float(_get("http_timeout", Settings.http_timeout)),
        log_level=str(_get("log_level", Settings.log_level)).upper(),
    )
