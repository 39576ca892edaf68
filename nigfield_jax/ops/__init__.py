from .sar import (
    as_operator,
    densify,
    sar_operator,
    apply_operator,
    apply_sar,
    check_operator_shapes,
    log_det_term,
    log_det_term_unchecked,
)

__all__ = [
    "as_operator",
    "densify",
    "sar_operator",
    "apply_operator",
    "apply_sar",
    "check_operator_shapes",
    "log_det_term",
    "log_det_term_unchecked",
]
