import numpy as np
import matplotlib.pyplot as plt

from typing import Optional

from .timeseries import TimeSeries
from .utils import find_largest_factors


class TimeSeriesPlotter(TimeSeries):
    """
    TimeSeries that can draw itself, one subplot per series.
    """

    def __init__(self, n_series: int, title: str, dt: float):
        super().__init__(n_series)
        self.title = title
        self.dt = dt

    def plot(self, save_name: Optional[str] = None, show: bool = False):
        data = self.to_matrix()
        t = self.dt * np.arange(data.shape[0])

        ncols, nrows = find_largest_factors(self.n_series)
        fig, axs = plt.subplots(nrows=nrows, ncols=ncols, sharex=True, squeeze=False,
                                figsize=(4 * ncols, 2 * nrows))
        for i, ax in enumerate(axs.flat):
            ax.plot(t, data[:, i], c='b')
            ax.set_ylabel(f'[{i}]')
        for ax in axs[-1]:
            ax.set_xlabel('t [s]')
        fig.suptitle(self.title)

        if save_name is not None:
            fig.savefig(save_name, bbox_inches='tight')
        if show:
            plt.show()
        return fig
