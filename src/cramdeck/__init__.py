"""cramdeck: spaced-repetition scheduling for exam-prep question banks."""

from cramdeck.consts import VERSION

__version__ = VERSION
