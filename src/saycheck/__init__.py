"""
Saycheck - Pronunciation practice with live speech recognition.

Compares what the speaker says, as reported by a speech recognizer, against
a practice sentence and shows word by word which words were said correctly.
"""

__version__ = "0.1.0"

from .alignment import AlignmentResult, RecognizedMatch, align, get_strategy
from .main import SaycheckApp
from .scheduler import UpdateScheduler
from .server import WebServer
from .session import PracticeSession
from .tokenizer import TargetWord, normalize_word, parse_text, tokenize
from .tracker import ProgressTracker, SessionProgress

__all__ = [
    "AlignmentResult",
    "RecognizedMatch",
    "align",
    "get_strategy",
    "TargetWord",
    "normalize_word",
    "parse_text",
    "tokenize",
    "ProgressTracker",
    "SessionProgress",
    "UpdateScheduler",
    "PracticeSession",
    "WebServer",
    "SaycheckApp",
]
