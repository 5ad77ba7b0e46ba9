"""Global constants for Chord Follower."""

# Pitch names (sharps), index = pitch class
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Sentinel label for "no chord detected"
NO_CHORD = "N"

# Audio capture defaults
DEFAULT_SR = 44100
DEFAULT_FRAME_SIZE = 2048
DEFAULT_DOWNSAMPLE_FACTOR = 4

# Chromagram defaults (sizes in decimated samples)
DEFAULT_BUFFER_SIZE = 8192
DEFAULT_HOP_SIZE = 4096
REFERENCE_FREQUENCY = 130.81278265  # C3

# Interval offsets of a major triad
MAJOR_TRIAD = (0, 4, 7)
