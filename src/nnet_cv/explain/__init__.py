from .ale import compute_ale, plot_ale

__all__ = ["compute_ale", "plot_ale"]
