"""Process-wide default options for projection runs."""

from __future__ import annotations

import copy
import logging

from .errors import InvalidParameterError
from .model import ProjectionOptions

logger = logging.getLogger(__name__)

_DEFAULT_OPTIONS = ProjectionOptions()


def validate_options(options: ProjectionOptions) -> None:
    """Raise :class:`InvalidParameterError` for out-of-range parameters."""

    if int(options.number_of_dimensions) != options.number_of_dimensions or options.number_of_dimensions < 2:
        raise InvalidParameterError(
            f"number_of_dimensions must be an integer >= 2 (got {options.number_of_dimensions!r})"
        )
    if int(options.number_of_iterations) != options.number_of_iterations or options.number_of_iterations < 0:
        raise InvalidParameterError(
            f"number_of_iterations must be a non-negative integer (got {options.number_of_iterations!r})"
        )
    if not 0.0 < options.initial_lambda <= 1.0:
        raise InvalidParameterError(f"initial_lambda must be in (0, 1] (got {options.initial_lambda!r})")
    if options.lambda_threshold < 0.0:
        raise InvalidParameterError("lambda_threshold must be >= 0")
    if options.boundary_usage_limit < 0:
        raise InvalidParameterError("boundary_usage_limit must be >= 0")
    if options.tolerance <= 0.0:
        raise InvalidParameterError("tolerance must be > 0")
    if options.dimensions is not None:
        columns = list(options.dimensions)
        if not columns:
            raise InvalidParameterError("dimensions must select at least one column")
        if len(set(columns)) != len(columns):
            raise InvalidParameterError(f"dimensions contains duplicate columns: {columns}")
        if any(int(c) != c or c < 0 for c in columns):
            raise InvalidParameterError(f"dimensions must be non-negative column indices: {columns}")


def get_default_options() -> ProjectionOptions:
    return copy.deepcopy(_DEFAULT_OPTIONS)


def set_default_options(options: ProjectionOptions) -> None:
    global _DEFAULT_OPTIONS
    validate_options(options)
    logger.info("Updating default projection options: %s", options)
    _DEFAULT_OPTIONS = copy.deepcopy(options)
