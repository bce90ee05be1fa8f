"""
Script mining: recover entity ids from the decompiled map script.
"""

from .base import ScriptMiner
from .blocks import extract_conditional_block
from .classic import ClassicScriptMiner
from .numeric import NumericScriptMiner

__all__ = [
    "ScriptMiner",
    "ClassicScriptMiner",
    "NumericScriptMiner",
    "extract_conditional_block",
]
