"""Global constants for Track Analyzer."""

# Pitch names (index 0 = C, chromatic)
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Reference tuning
A4_FREQUENCY = 440.0
A4_MIDI = 69

# Spectrogram defaults for the tempo path
BPM_WINDOW_SIZE = 4096  # Frequency resolution for kick/bass onsets
BPM_HOP_SIZE = 256  # ~5.8ms frames at 44.1kHz
BPM_MIN_FREQ = 10.0
BPM_MAX_FREQ = 2000.0

# Spectrogram defaults for the key path
KEY_WINDOW_SIZE = 8192  # Fine pitch resolution
KEY_HOP_SIZE = 1024
KEY_MIN_FREQ = 80.0
KEY_MAX_FREQ = 2000.0

# Beat detection defaults
DEFAULT_THRESHOLD_PERCENTAGE = 0.8  # min + (max - min) * 80%
DEFAULT_SECTION_SIZE = 100  # frames, 50% overlap
DEFAULT_CLUSTER_GAP = 0.05  # seconds
DEFAULT_DEBOUNCE_SECONDS = 0.10
MAX_BEAT_CONFIDENCE = 2.0
MIN_BEATS_FOR_BPM = 3

# Tempo estimation defaults
MIN_BEAT_INTERVAL = 0.2  # 300 BPM
MAX_BEAT_INTERVAL = 2.0  # 30 BPM
HISTOGRAM_BIN_SIZE = 0.01  # 10ms
HISTOGRAM_TOLERANCE_BINS = 2  # +-20ms
DEFAULT_SCORE_DEVIATION = 0.10
SUBDIVISION_THRESHOLD = 160.0
SUBDIVISION_RANGE = (80.0, 160.0)
VALID_BPM_RANGE = (50.0, 250.0)
DEFAULT_TEMPO = 120.0

# Key detection defaults
DEFAULT_CONFIDENCE_NORMALIZER = 10.0
