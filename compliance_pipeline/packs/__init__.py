"""
Sample rule packs, built by explicit construction.

PACK_FACTORIES maps the pack names accepted in configuration to their
factories. Nothing registers itself globally.
"""
from typing import Callable, Dict

from engine import RulePack

from .baseline import build_baseline_pack, get_baseline_rules
from .hipaa_security import build_hipaa_security_pack, get_hipaa_security_rules


PACK_FACTORIES: Dict[str, Callable[..., RulePack]] = {
    'Baseline': build_baseline_pack,
    'HIPAA.Security': build_hipaa_security_pack,
}


__all__ = [
    'PACK_FACTORIES',
    'build_baseline_pack',
    'build_hipaa_security_pack',
    'get_baseline_rules',
    'get_hipaa_security_rules',
]
