"""Story generation, speech synthesis and input sanitising."""

from .sanitizer import sanitize
from .speech_synthesizer import SpeechSynthesizer
from .story_generator import StoryGenerator

__all__ = ["SpeechSynthesizer", "StoryGenerator", "sanitize"]
