"""Plugin dependency resolution.

Orders plugins so that each one registers after every non-optional
dependency. Independent plugins keep their input order.
"""

import logging
from typing import Any, Dict, List, Sequence

from ..errors import DependencyResolutionError
from ..plugins import get_dependencies
from .schema import ValidationError, ValidationErrorType

logger = logging.getLogger(__name__)


def find_resolution_errors(plugins: Sequence[Any]) -> List[ValidationError]:
    """Collect duplicate-id and missing-dependency errors without ordering."""
    errors: List[ValidationError] = []
    seen: Dict[str, int] = {}

    for plugin in plugins:
        if plugin.id in seen:
            errors.append(ValidationError(
                type=ValidationErrorType.DUPLICATE_ID,
                message=f'Plugin id "{plugin.id}" is supplied more than once',
                plugin_id=plugin.id,
            ))
        seen[plugin.id] = seen.get(plugin.id, 0) + 1

    for plugin in plugins:
        for dep in get_dependencies(plugin):
            if dep.id in seen:
                continue
            if dep.optional:
                logger.debug(f"Skipping optional dependency '{dep.id}' of plugin '{plugin.id}'")
                continue
            errors.append(ValidationError(
                type=ValidationErrorType.DEPENDENCY_MISSING,
                message=f'Plugin "{plugin.id}" depends on "{dep.id}" which is not in the plugin list',
                plugin_id=plugin.id,
                details={'missing_dependency': dep.id},
            ))

    return errors


def resolve_plugin_order(plugins: Sequence[Any]) -> List[Any]:
    """Topologically sort plugins by their dependencies.

    Depth-first over the input in order; each plugin is emitted after all of
    its required dependencies. Optional dependencies and ``peer_plugins``
    never affect ordering.

    Args:
        plugins: Plugin objects in invocation order

    Returns:
        New list with every plugin placed after its dependencies

    Raises:
        DependencyResolutionError: On duplicate ids, missing required
            dependencies or cycles. No partial order is returned.
    """
    errors = find_resolution_errors(plugins)
    if errors:
        raise DependencyResolutionError(errors)

    by_id = {plugin.id: plugin for plugin in plugins}
    ordered: List[Any] = []
    done = set()
    reported_cycles = set()

    def visit(plugin_id: str, path: List[str]) -> None:
        if plugin_id in done:
            return
        if plugin_id in path:
            cycle = path[path.index(plugin_id):] + [plugin_id]
            key = frozenset(cycle)
            if key not in reported_cycles:
                reported_cycles.add(key)
                errors.append(ValidationError(
                    type=ValidationErrorType.CIRCULAR_DEPENDENCY,
                    message=f"Circular plugin dependency: {' -> '.join(cycle)}",
                    plugin_id=plugin_id,
                    details={'cycle': cycle},
                ))
            return

        path.append(plugin_id)
        # Only required dependencies are ordering edges
        for dep in get_dependencies(by_id[plugin_id]):
            if not dep.optional and dep.id in by_id:
                visit(dep.id, path)
        path.pop()

        if plugin_id not in done:
            done.add(plugin_id)
            ordered.append(by_id[plugin_id])

    for plugin in plugins:
        visit(plugin.id, [])

    if errors:
        raise DependencyResolutionError(errors)

    logger.debug(f"Resolved plugin order: {[p.id for p in ordered]}")
    return ordered
