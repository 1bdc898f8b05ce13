"""
Home command implementation.
"""


def run(args, context) -> int:
    """Print the ziege data directory."""
    print(context.locations.app_data)
    return 0
