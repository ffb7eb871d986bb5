"""SmartStick - spoken and haptic walking guidance for visually impaired users."""

__version__ = "0.3.0"
