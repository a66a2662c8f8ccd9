"""Bounded script execution against a session."""

from ctxpack.sandbox.executor import OutputBuffer, ScriptSandbox
from ctxpack.sandbox.policy import SAFE_BUILTINS, SAFE_MODULES, ScriptPolicyError, validate_script

__all__ = [
    "OutputBuffer",
    "SAFE_BUILTINS",
    "SAFE_MODULES",
    "ScriptPolicyError",
    "ScriptSandbox",
    "validate_script",
]
