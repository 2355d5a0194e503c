"""Playlist content: chapters and tracks submitted to the Yoto content APIs."""
from dataclasses import dataclass, field
from typing import List, Optional

from gridcard.models.media import TranscodedAudio


@dataclass
class Track:
    """One track: spoken text (TTS) or a transcoded audio upload."""
    title: str
    text: Optional[str] = None
    audio: Optional[TranscodedAudio] = None
    icon: Optional[str] = None  # "yoto:#<mediaId>"


@dataclass
class Chapter:
    title: str
    tracks: List[Track] = field(default_factory=list)
    icon: Optional[str] = None
