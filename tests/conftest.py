"""Pytest configuration and shared fixtures."""

import sys
import asyncio
import inspect
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """Execute async tests without external plugins."""
    testfunction = pyfuncitem.obj
    if inspect.iscoroutinefunction(testfunction):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            sig = inspect.signature(testfunction)
            call_kwargs = {name: pyfuncitem.funcargs[name] for name in sig.parameters}
            loop.run_until_complete(testfunction(**call_kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None

# Complete semantic token set over gray/blue/green/red/yellow scales
BASE_TOKENS = {
    'background': 'white',
    'surface': 'gray.50',
    'surface_elevated': 'white',
    'surface_subdued': 'gray.100',
    'text': 'gray.900',
    'text_strong': 'gray.950',
    'text_muted': 'gray.700',
    'text_inverse': 'white',
    'primary': 'blue.700',
    'primary_hover': 'blue.800',
    'primary_active': 'blue.900',
    'success': 'green.800',
    'warning': 'yellow.900',
    'error': 'red.700',
    'info': 'blue.700',
    'border': 'gray.600',
    'border_strong': 'gray.700',
    'border_width': '1px',
    'focus': 'blue.600',
    'backdrop': 'black',
    'font_family': 'system-ui, sans-serif',
    'font_family_mono': 'ui-monospace, monospace',
    'font_family_heading': 'system-ui, sans-serif',
    'border_radius': '4px',
    'border_radius_large': '8px',
    'border_radius_full': '9999px',
    'shadow_sm': '0 1px 2px rgb(0 0 0 / 0.05)',
    'shadow_md': '0 4px 6px rgb(0 0 0 / 0.1)',
    'shadow_lg': '0 10px 15px rgb(0 0 0 / 0.1)',
    'shadow_xl': '0 20px 25px rgb(0 0 0 / 0.15)',
}

BASE_COLORS = {
    'gray': {'source': {'l': 0.55, 'c': 0.02, 'h': 240}},
    'blue': {'source': {'l': 0.55, 'c': 0.15, 'h': 240}},
    'green': {'source': {'l': 0.55, 'c': 0.13, 'h': 145}},
    'red': {'source': {'l': 0.55, 'c': 0.15, 'h': 25}},
    'yellow': {'source': {'l': 0.65, 'c': 0.13, 'h': 85}},
}


@pytest.fixture
def make_tokens():
    """Factory for a complete token mapping with optional overrides."""
    def factory(**overrides):
        tokens = dict(BASE_TOKENS)
        tokens.update(overrides)
        return tokens
    return factory


@pytest.fixture
def palette_plugin(make_tokens):
    """Plugin registering the base palette and a 'light' variant."""
    from tokenforge.plugins import ThemePlugin

    def register(builder):
        for name, definition in BASE_COLORS.items():
            builder.add_color(name, definition)
        builder.add_theme_variant('light', make_tokens())

    return ThemePlugin(id='palette', version='1.0.0', register=register)
