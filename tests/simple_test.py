"""Example usage of the quill logger."""

import tempfile
from pathlib import Path

from quill_log import InvalidLogLevelError, InvalidStyleError, QuillLogger, configure_logger


def demonstrate_logging_features(quill: QuillLogger) -> None:
    """Demonstrate various logging features.

    Args:
        quill: Configured logger instance
    """
    # Interpolation, extra arguments are appended as JSON
    quill.log("Info", "Application started, version %s", "1.0.0", {"pid": 1234})

    # Listeners receive every message of their level
    quill.on("Error", lambda level, message, params, timestamp, formatted: print(f"listener saw: {formatted}"))
    quill.log("Error", "Resource usage high: cpu=%d%%", 85)

    # Unknown levels are caller bugs and raise
    try:
        quill.log("Debug", "This level was never configured")
    except InvalidLogLevelError as e:
        print(f"Expected error: {e}")


def main() -> None:
    """Main entry point demonstrating different configuration options."""
    log_dir = Path(tempfile.mkdtemp(prefix="quill-log-"))

    # 1. Configure in code, with a shared log file and a dedicated error file
    print("\n=== Using the Builder ===")
    quill = (
        configure_logger()
        .with_format("[{{level.gray}}] {{date.gray:HH:mm:ss}} {{msg}}")
        .with_level("Info", color="white", sink="info", prefix="INFO")
        .with_level(
            "Error",
            color="red",
            sink="error",
            prefix="ERROR",
            format="{{prefix.bold}} {{date:HH:mm:ss}}: {{msg}}",
            files=log_dir / "errors",
        )
        .with_files(log_dir, buffer_size=10, flush_interval=1.0)
        .with_exit_hook()
        .build()
    )
    demonstrate_logging_features(quill)

    # 2. A broken template fails at log time
    print("=== Using an Unknown Style ===")
    broken = configure_logger().with_format("{{msg.sparkly}}").build()
    try:
        broken.log("Info", "never printed")
    except InvalidStyleError as e:
        print(f"Expected error: {e}")

    # 3. Shutdown drains the buffers to disk
    print("\n=== Shutting Down ===")
    quill.shutdown()
    for path in sorted(log_dir.rglob("*.log")):
        print(f"{path.relative_to(log_dir)}:")
        print(path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    main()
