"""Color references and the flattened reference registry.

Every registered color step is reachable as a ``ColorRef``. The builder keeps
a ``ColorRefs`` registry keyed by ``<name><step>`` (``blue500``) so plugins
can pick up colors registered by earlier plugins.
"""

from typing import Dict, Iterator, Mapping, Optional, Union

from .schema import ColorRef, ColorScale, ColorValue, SpecialColor, validate_steps


def create_color_ref(color_name: str, step: int) -> ColorRef:
    """Create a reference to one step of a color.

    Raises:
        ValueError: If the name is malformed or the step is not canonical
    """
    validate_steps([step])
    return ColorRef(color_name=color_name, step=step)


def parse_color_ref(text: str) -> ColorValue:
    """Parse ``"blue.500"``, ``"white"`` or ``"black"``."""
    return ColorRef.parse(text)


def serialize_color_ref(ref: ColorValue) -> str:
    """Inverse of ``parse_color_ref``."""
    return str(ref)


def resolve_color_ref(ref: Union[ColorValue, str], primitives: Mapping[str, ColorScale]) -> str:
    """Resolve a reference to its hex value.

    Args:
        ref: ColorRef, SpecialColor or reference string
        primitives: Generated scales keyed by color name

    Returns:
        Hex color string

    Raises:
        KeyError: If the color or step is not present in ``primitives``
    """
    if isinstance(ref, str) and not isinstance(ref, SpecialColor):
        ref = parse_color_ref(ref)
    if isinstance(ref, SpecialColor):
        return ref.hex

    scale = primitives.get(ref.color_name)
    if scale is None or ref.step not in scale:
        raise KeyError(f"Color reference '{ref}' does not resolve to a registered color")
    return scale[ref.step].hex


class ColorRefs(Mapping):
    """Read-only view of registered color references.

    Supports item access (``refs["ocean-blue500"]``) and, for names that are
    valid identifiers, attribute access (``refs.blue500``).
    """

    def __init__(self, refs: Optional[Dict[str, ColorRef]] = None):
        self._refs: Dict[str, ColorRef] = refs if refs is not None else {}

    def __getitem__(self, key: str) -> ColorRef:
        return self._refs[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._refs)

    def __len__(self) -> int:
        return len(self._refs)

    def __getattr__(self, name: str) -> ColorRef:
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            return self._refs[name]
        except KeyError:
            raise AttributeError(f"No color reference named '{name}'") from None

    def __dir__(self):
        return list(super().__dir__()) + [k for k in self._refs if k.isidentifier()]

    def __repr__(self) -> str:
        return f"ColorRefs({len(self._refs)} refs)"

    def _register(self, name: str, step: int) -> ColorRef:
        ref = create_color_ref(name, step)
        self._refs[ref.key] = ref
        return ref
