"""InkVision landmark overlay."""
