"""Named constants for RipSync. No magic numbers."""

from pathlib import Path

# --- Application ---
APP_NAME = "RipSync"
APP_VERSION = "0.1.0"

# --- Container Sniffing ---
FLAC_MAGIC = b"fLaC"
ID3_MAGIC = b"ID3"
ID3_HEADER_SIZE = 10
MPEG_SYNC_MASK = 0xE0  # 11 set bits of the MPEG frame sync word

# --- Tags ---
ID3_VERSION = 4  # Output files always carry ID3v2.4
YEAR_MIN = 1000
YEAR_MAX = 9999

# Fixed Vorbis comment keys read from lossless sources, by normalized field
VORBIS_FIELD_MAP = {
    "title": "TITLE",
    "track_number": "TRACKNUMBER",
    "artist": "ARTIST",
    "album": "ALBUM",
    "year": "DATE",
    "genre": "GENRE",
}

# EasyID3 keys used for the embedded-frame scheme, by normalized field
EASYID3_FIELD_MAP = {
    "title": "title",
    "artist": "artist",
    "album": "album",
    "year": "date",
    "track_number": "tracknumber",
    "genre": "genre",
}
GENRE_FRAME_ID = "TCON"

# --- Transcoding ---
DEFAULT_DECODER_BINARY = "flac"
DEFAULT_DECODER_OPTIONS = "--decode --stdout --totally-silent"
DEFAULT_ENCODER_BINARY = "lame"
DEFAULT_ENCODER_OPTIONS = "--silent -V 0"
DEFAULT_TARGET_EXTENSION = "mp3"
DEFAULT_BITRATE_FLOOR_KBPS = 320
STDIN_ARGUMENT = "-"

# --- Matching ---
DEFAULT_DURATION_TOLERANCE_SECONDS = 5.0
MILLISECONDS_PER_SECOND = 1000
SECONDS_PER_MINUTE = 60

# --- Discogs ---
DISCOGS_API_URL = "https://api.discogs.com"
DISCOGS_USER_AGENT = f"{APP_NAME}/{APP_VERSION}"
# Discogs allows 60 requests per minute for authenticated clients
DISCOGS_RATE_LIMIT_CALLS = 60
DISCOGS_RATE_LIMIT_PERIOD = 60.0
TRACKLIST_TYPE_TRACK = "track"

# --- API Retry / Timeout ---
API_MAX_RETRIES = 3
API_RETRY_BACKOFF_SECONDS = 3.0  # Base wait between retries (multiplied by attempt)
API_TIMEOUT_SECONDS = 10

# --- Candidate Ranking ---
DEFAULT_MAX_SEARCH_CANDIDATES = 5

# --- Processing ---
DEFAULT_MAX_CONCURRENT_DIRECTORIES = 1

# --- Paths ---
DEFAULT_CONFIG_PATH = Path("~/.config/ripsync/config.yaml")
ENV_DISCOGS_TOKEN = "DISCOGS_TOKEN"
ENV_SOURCE_PATH = "SOURCE"

# --- CLI Exit Codes ---
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
