"""Default design tokens and the token merge function.

Plugins that want the stock spacing, radius, motion and typography scales
merge their overrides into ``create_default_design_tokens()`` explicitly.
"""

import copy
from typing import Any, Dict, Optional, Union

from .schema import DesignTokens
from .utils import deep_merge_dict


DEFAULT_SPACING = {
    'base': 4,
    'scale': [0, 0.5, 1, 1.5, 2, 2.5, 3, 4, 5, 6, 8, 10, 12, 16, 20, 24],
    'semantic': {'2xs': 1, 'xs': 2, 'sm': 3, 'md': 4, 'lg': 6, 'xl': 8, '2xl': 10},
}

DEFAULT_RADIUS = {
    'none': 0,
    'sm': 2,
    'md': 4,
    'lg': 8,
    'xl': 12,
    '2xl': 16,
    '3xl': 24,
    'full': 9999,
}

DEFAULT_MOTION = {
    'durations': {'instant': 0, 'fast': 150, 'normal': 300, 'slow': 500},
    'easings': {
        'linear': 'linear',
        'in': 'cubic-bezier(0.4, 0, 1, 1)',
        'out': 'cubic-bezier(0, 0, 0.2, 1)',
        'in_out': 'cubic-bezier(0.4, 0, 0.2, 1)',
        'bounce': 'cubic-bezier(0.68, -0.55, 0.265, 1.55)',
    },
    'transitions': {
        'fast': '150ms cubic-bezier(0, 0, 0.2, 1)',
        'base': '300ms cubic-bezier(0.4, 0, 0.2, 1)',
        'slow': '500ms cubic-bezier(0.4, 0, 0.2, 1)',
        'bounce': '500ms cubic-bezier(0.68, -0.55, 0.265, 1.55)',
    },
}

DEFAULT_TYPOGRAPHY = {
    'font_families': {
        'sans': '-apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif',
        'mono': '"SF Mono", Monaco, "Cascadia Code", "Courier New", monospace',
    },
    'font_sizes': {
        'xs': 12,
        'sm': 14,
        'base': 16,
        'lg': 18,
        'xl': 20,
        '2xl': 24,
        '3xl': 30,
        '4xl': 36,
    },
    'line_heights': {
        'none': 1,
        'tight': 1.25,
        'snug': 1.375,
        'normal': 1.5,
        'relaxed': 1.625,
        'loose': 2,
        'heading-sm': 1.3,
        'heading-md': 1.25,
        'heading-lg': 1.2,
    },
    'font_weights': {
        'light': 300,
        'normal': 400,
        'medium': 500,
        'semibold': 600,
        'bold': 700,
    },
}

DEFAULT_FOCUS = {'width': 2, 'offset': 2, 'style': 'solid'}

DEFAULT_Z_INDEX = {
    'base': 0,
    'dropdown': 1000,
    'sticky': 1020,
    'overlay': 1030,
    'modal': 1040,
    'popover': 1060,
    'tooltip': 1080,
}

DEFAULT_OPACITY = {
    'disabled': 0.5,
    'hover': 0.8,
    'overlay': 0.6,
    'subtle': 0.4,
}

DEFAULT_BREAKPOINTS = {
    'sm': '640px',
    'md': '768px',
    'lg': '1024px',
    'xl': '1280px',
    '2xl': '1536px',
}

DEFAULT_ACCESSIBILITY = {
    'enforce_wcag': False,
    'minimum_contrast': {
        'text': 4.5,
        'text_large': 3.0,
        'ui': 3.0,
        'interactive': 3.0,
        'focus': 3.0,
    },
    'color_blind_safe': True,
    'min_hue_difference': 60,
    'high_contrast': True,
}


def default_design_token_dict() -> Dict[str, Any]:
    """Fresh copy of the default tokens as plain data."""
    return copy.deepcopy({
        'spacing': DEFAULT_SPACING,
        'radius': DEFAULT_RADIUS,
        'motion': DEFAULT_MOTION,
        'typography': DEFAULT_TYPOGRAPHY,
        'focus': DEFAULT_FOCUS,
        'z_index': DEFAULT_Z_INDEX,
        'opacity': DEFAULT_OPACITY,
        'breakpoints': DEFAULT_BREAKPOINTS,
        'accessibility': DEFAULT_ACCESSIBILITY,
    })


def create_default_design_tokens() -> DesignTokens:
    """Build the stock design tokens."""
    return DesignTokens.model_validate(default_design_token_dict())


def merge_design_tokens(
    defaults: Union[DesignTokens, Dict[str, Any]],
    overrides: Optional[Union[DesignTokens, Dict[str, Any]]],
) -> DesignTokens:
    """Deep-merge token overrides onto a base set.

    Nested mappings merge key by key, lists and scalars replace, and
    ``None`` values in the overrides are ignored. Keys may be snake_case
    or camelCase at the category level.

    Args:
        defaults: Base tokens
        overrides: Partial tokens to apply

    Returns:
        New validated DesignTokens
    """
    base = defaults.model_dump() if isinstance(defaults, DesignTokens) else _normalize(defaults)
    if overrides is None:
        return DesignTokens.model_validate(base)
    if isinstance(overrides, DesignTokens):
        patch = overrides.model_dump()
    else:
        patch = _normalize(overrides)
    return DesignTokens.model_validate(deep_merge_dict(base, patch))


def _normalize(data: Dict[str, Any]) -> Dict[str, Any]:
    """Rewrite camelCase model keys to field names, recursively."""
    return _normalize_for(DesignTokens, dict(data))


def _normalize_for(model, data: Dict[str, Any]) -> Dict[str, Any]:
    result = {}
    for key, value in data.items():
        name = key
        for field_name, info in model.model_fields.items():
            if key == field_name or key == info.alias:
                name = field_name
                break
        annotation = model.model_fields[name].annotation if name in model.model_fields else None
        if isinstance(value, dict) and isinstance(annotation, type) and hasattr(annotation, 'model_fields'):
            value = _normalize_for(annotation, value)
        result[name] = value
    return result
