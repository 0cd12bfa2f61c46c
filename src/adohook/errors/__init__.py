"""Error taxonomy and HTTP exception handlers."""
