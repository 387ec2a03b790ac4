# ----------------------------- #
# 📌 Konstanta Aplikasi MINILOK
# ----------------------------- #
from models import Cluster

APP_NAME = "MINILOK"
APP_TAGLINE = "E-Kinerja Puskesmas"
APP_SUBTITLE = "Sistem Pemantauan Kinerja Bulanan"

# Kunci tunggal untuk dataset lokal (satu dokumen JSON)
STORAGE_KEY = "minilok_data"

# Daftar kluster tetap, tidak bisa diubah pengguna
CLUSTERS = [
    Cluster("k1", "Kluster 1", "Administrasi Manajemen"),
    Cluster("k2", "Kluster 2", "Ibu dan Balita"),
    Cluster("k3", "Kluster 3", "Dewasa dan Lansia"),
    Cluster("k4", "Kluster 4", "Penyakit Menular dan Tidak Menular"),
    Cluster("k5", "Kluster 5", "Lintas Kluster"),
]
CLUSTER_BY_ID = {c.id: c for c in CLUSTERS}

# Pola target kegiatan
TARGET_LOGIC_CUMULATIVE = "cumulative"  # target bertambah setiap bulan
TARGET_LOGIC_STATIC = "static"          # target sama setiap bulan
TARGET_LOGICS = [TARGET_LOGIC_STATIC, TARGET_LOGIC_CUMULATIVE]
TARGET_LOGIC_LABELS = {
    TARGET_LOGIC_STATIC: "Statis (Target sama tiap bulan)",
    TARGET_LOGIC_CUMULATIVE: "Kumulatif (Target bertambah tiap bulan)",
}

MONTHS = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]

# Pilihan jumlah baris per halaman; None berarti "Semua"
PAGE_SIZE_OPTIONS = [5, 10, 20, None]
DEFAULT_PAGE_SIZE = 10

# Rentang tahun di pemilih tahun (sekitar tahun berjalan)
YEAR_WINDOW = 2

ACHIEVED_LABEL = "Tercapai"
NOT_ACHIEVED_LABEL = "Tidak Tercapai"
