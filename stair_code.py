"""Stair code limits and compliance checks.

CodeRules holds the riser, tread, width and rail height limits every run is
checked against. All lengths share one drawing unit and nothing is converted.
"""


class CodeRules:
    """Code limits for stairs. Read-only for the lifetime of the process."""

    MIN_RISER = 4.0
    MAX_RISER = 8.0
    DEFAULT_RISER = 6.0

    MIN_WIDTH = 36.0
    MAX_WIDTH = 400.0
    DEFAULT_WIDTH = 40.0

    MIN_TREAD = 11.0
    MAX_TREAD = 60.0
    DEFAULT_TREAD = 12.0

    MIN_RAIL_HEIGHT = 32.0
    MAX_RAIL_HEIGHT = 56.0
    DEFAULT_RAIL_HEIGHT = 44.0

    # Derived, not looked up
    MAX_SLOPE = MAX_RISER / MIN_TREAD
    MIN_SLOPE = MIN_RISER / MAX_TREAD

    @classmethod
    def as_dict(cls) -> dict:
        return {
            name.lower(): value
            for name, value in vars(cls).items()
            if name.isupper()
        }


class StairCodeValidator:
    """Validator for a single flight against CodeRules."""

    @staticmethod
    def check_run(run) -> list[str]:
        """
        Validate a run of stairs.

        Args:
            run: a stair_run.Run

        Returns:
            Human readable issues, empty when the run complies.
        """
        issues = []

        riser = run.riser_dim
        tread = run.tread_dim
        slope = run.slope

        if not (CodeRules.MIN_RISER <= riser <= CodeRules.MAX_RISER):
            issues.append(
                f"Riser height {riser:.2f} is outside compliant range "
                f"[{CodeRules.MIN_RISER:g}, {CodeRules.MAX_RISER:g}]")

        if not (CodeRules.MIN_TREAD <= tread <= CodeRules.MAX_TREAD):
            issues.append(
                f"Tread depth {tread:.2f} is outside compliant range "
                f"[{CodeRules.MIN_TREAD:g}, {CodeRules.MAX_TREAD:g}]")

        if not run.is_valid:
            issues.append(
                f"Slope {slope:.3f} is outside compliant range "
                f"[{CodeRules.MIN_SLOPE:.3f}, {CodeRules.MAX_SLOPE:.3f}]")

        issues.extend(StairCodeValidator.check_dimensions(run.width, run.rail_height))
        return issues

    @staticmethod
    def check_dimensions(width: float, rail_height: float) -> list[str]:
        """Validate the user-chosen width and rail height."""
        issues = []
        if not (CodeRules.MIN_WIDTH <= width <= CodeRules.MAX_WIDTH):
            issues.append(
                f"Width {width:.1f} is outside compliant range "
                f"[{CodeRules.MIN_WIDTH:g}, {CodeRules.MAX_WIDTH:g}]")
        if not (CodeRules.MIN_RAIL_HEIGHT <= rail_height <= CodeRules.MAX_RAIL_HEIGHT):
            issues.append(
                f"Rail height {rail_height:.1f} is outside compliant range "
                f"[{CodeRules.MIN_RAIL_HEIGHT:g}, {CodeRules.MAX_RAIL_HEIGHT:g}]")
        return issues
