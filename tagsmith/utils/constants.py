"""Named constants for Tagsmith. No magic numbers."""

# --- Application ---
APP_NAME = "Tagsmith"
APP_VERSION = "0.1.0"
DEFAULT_CONFIG_FILENAME = "config.yaml"
DEFAULT_DB_FILENAME = "tagsmith.db"

# --- Supported Audio Extensions ---
AUDIO_EXTENSIONS = frozenset({
    ".mp3",
    ".flac",
    ".m4a",
    ".aac",
    ".ogg",
    ".opus",
    ".wma",
    ".aiff",
    ".aif",
    ".wav",
    ".ape",
    ".wv",
})

# --- Tree Levels (depth below the scanned root) ---
LEVEL_ROOT = 0
LEVEL_RELEASE = 1  # Top-level release folders; never collapsed into the root
LEVEL_TRACK = 2  # Depth at which collapsed tracks come to rest

# --- Metadata Defaults ---
DEFAULT_TRACK_NUMBER = "00"
TRACK_NUMBER_WIDTH = 2

# --- Renaming Templates ---
TOKEN_TITLE = "%Title%"

DEFAULT_RELEASE_TEMPLATE = "%ReleaseArtist%-%Release%-%ReleaseYear%"
DEFAULT_TRACK_TEMPLATE = "%Track%-%Artist%-%Title%"
DEFAULT_FLAT_TEMPLATE = "00-%ReleaseArtist%-%Release%"

# --- Formatting ---
# Filesystem-hostile characters, applied in this order.
DEFAULT_REPLACEMENTS = {
    "\\": " ",
    "/": " ",
    ":": " ",
    "*": "",
    "?": "",
    "<": "",
    ">": "",
}
CASING_TITLE = "title"
CASING_LOWER = "lower"
CASING_UPPER = "upper"
VALID_CASINGS = frozenset({CASING_TITLE, CASING_LOWER, CASING_UPPER})

SORT_BY_TRACK = "track"
SORT_BY_TITLE = "title"
VALID_SORT_KEYS = frozenset({SORT_BY_TRACK, SORT_BY_TITLE})

# Case-only renames go through this intermediate suffix.
RENAME_SENTINEL = "_"

# --- Search ---
DEFAULT_MAX_RESULTS = 5
PROVIDER_MUSICBRAINZ = "musicbrainz"
PROVIDER_LASTFM = "lastfm"
PROVIDER_ITUNES = "itunes"
DEFAULT_PROVIDER_ORDER = (PROVIDER_MUSICBRAINZ, PROVIDER_LASTFM, PROVIDER_ITUNES)

MUSICBRAINZ_APP_NAME = "Tagsmith"
MUSICBRAINZ_APP_VERSION = APP_VERSION
MUSICBRAINZ_CONTACT = "https://github.com/tagsmith/tagsmith"

LASTFM_API_URL = "https://ws.audioscrobbler.com/2.0/"
ITUNES_SEARCH_URL = "https://itunes.apple.com/search"
ITUNES_LOOKUP_URL = "https://itunes.apple.com/lookup"
ITUNES_DEFAULT_COUNTRY = "US"
ITUNES_ARTWORK_SIZE = "600x600bb"

# --- API Rate Limits (seconds between requests) ---
MUSICBRAINZ_RATE_LIMIT = 1.0
LASTFM_RATE_LIMIT = 0.25
ITUNES_RATE_LIMIT = 3.0

# --- API Retry / Timeout ---
API_MAX_RETRIES = 3
API_RETRY_BACKOFF_SECONDS = 2.0  # Base wait between retries (multiplied by attempt)
API_TIMEOUT_SECONDS = 10

# --- Cover Art ---
ART_CHECK_TIMEOUT_SECONDS = 1.0
ART_DOWNLOAD_TIMEOUT_SECONDS = 20.0
ART_FILE_STEM = "image"
COVER_ART_ARCHIVE_URL = "https://coverartarchive.org/release/%MBRELEASEID%/front-500"

# Ordered site-name -> URL template table. Placeholders are filled from the
# selected release metadata; templates with unfilled placeholders are skipped.
DEFAULT_ART_SITES = {
    "coverartarchive": COVER_ART_ARCHIVE_URL,
    "amazon.com": "https://images.amazon.com/images/P/%ASIN%.01.LZZZZZZZ.jpg",
    "amazon.co.uk": "https://images-eu.amazon.com/images/P/%ASIN%.02.LZZZZZZZ.jpg",
    "amazon.co.jp": "https://images-jp.amazon.com/images/P/%ASIN%.09.LZZZZZZZ.jpg",
    "cdbaby": "http://cdbaby.name/%ALBUMCHAR0%/%ALBUMCHAR1%/%ALBUM%.jpg",
}

# --- Checksum ---
CHECKSUM_FILE_STEM = "checksum"
CHECKSUM_EXTENSION = ".md5"
CHECKSUM_SEPARATOR = " !"
CHECKSUM_READ_CHUNK = 64 * 1024

# --- Filename Heuristics ---
FILENAME_TRACK_PATTERN = r"(?<!\w)(?P<track>\d{1,2})(?!\w|$)"
FILENAME_ARTIST_PATTERN = r"(^|(?<=\d)\.|-|(?<=\d)\s)(?P<artist>([\D\.]+?[\s\d]*?))-"

# --- Transcoding ---
FFMPEG_BINARY = "ffmpeg"
TRANSCODE_TIMEOUT_SECONDS = 600

# --- ID3 Tag Constants ---
ID3_ENCODING_UTF8 = 3
ID3_PICTURE_TYPE_COVER_FRONT = 3

# --- API Cache ---
API_CACHE_MAX_AGE_DAYS = 30

# --- Candidate Confidence ---
WEIGHT_RELEASE = 0.5
WEIGHT_ARTIST = 0.5
