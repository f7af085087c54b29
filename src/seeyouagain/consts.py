VERSION = "0.3.0"

# Version string of the memory model this engine implements.
FSRS_VERSION = f"v{VERSION} using FSRS-5.0"
