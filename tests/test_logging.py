import logging

from nigfield_jax.utils import configure_logging, get_logger


def test_loggers_live_under_package_root():
    assert get_logger("nigfield_jax.energy.sar").name == "nigfield_jax.energy.sar"
    assert get_logger("my_script").name == "nigfield_jax.my_script"
    assert get_logger("__main__").name == "nigfield_jax.main"
    # caller's module name when no name is given
    assert get_logger().name == f"nigfield_jax.{__name__}"


def test_configure_sets_root_level():
    root = logging.getLogger("nigfield_jax")
    previous = root.level
    try:
        configure_logging("DEBUG")
        assert root.level == logging.DEBUG
        assert root.handlers
    finally:
        root.setLevel(previous)
