# Example experiments: reservoir with random feedback, clamped-feedback regression and FORCE (RLS) learning
import os
import sys
import logging
import numpy as np
import matplotlib.pyplot as plt

from tqdm import tqdm
from typing import Optional

from config import reservoir_config, readout_config, rls_config, experiment_config
from rcnet.reservoir import Reservoir
from rcnet.readout import Readout, ReadoutClampedFB, ReadoutLearningRLS
from rcnet.learning import LearningModuleRegression
from rcnet.streams import WAVES
from rcnet.timeseries import TimeSeries, TimeSeriesStream
from rcnet.plotting import TimeSeriesPlotter
from rcnet.utils import Stopwatch


def make_target(name: str, exp_config: dict):
    target_cfg = exp_config['target'][name]
    return WAVES[target_cfg['wave']](target_cfg['period'])


def finish_plots(plotters: dict, exp_config: dict):
    if not exp_config['do_plot']:
        return

    save_folder = exp_config['save_folder']
    if save_folder is not None:
        os.makedirs(save_folder, exist_ok=True)

    for name, plotter in plotters.items():
        save_name = None if save_folder is None else os.path.join(save_folder, f'{name}.pdf')
        fig = plotter.plot(save_name=save_name)
        if save_folder is not None:
            plt.close(fig)

    if save_folder is None:
        plt.show()


def simulate_feedback(res_config: Optional[dict] = None,
                      ro_config: Optional[dict] = None,
                      exp_config: Optional[dict] = None,
                      with_feedback: bool = True):
    """
    Simulates a reservoir, optionally with feedback from random (untrained) readout units.
    """
    res_config = res_config or reservoir_config
    ro_config = ro_config or readout_config
    exp_config = exp_config or experiment_config

    rng = np.random.default_rng(exp_config['seed'])
    reservoir = Reservoir(**res_config, rng=rng)
    readout = Readout(exp_config['n_readout_random'], reservoir.size(), **ro_config, rng=rng)
    if with_feedback:
        reservoir.set_feedback(readout)

    res_data = TimeSeriesPlotter(min(exp_config['n_track'], reservoir.size()),
                                 'Time series of selected reservoir neurons', reservoir.dt)
    ro_data = TimeSeriesPlotter(readout.size(), 'Time series of readout neurons', reservoir.dt)

    sw = Stopwatch()
    for _ in tqdm(range(exp_config['steps']['free']), desc='Simulating'):
        reservoir.step()
        res_data.add_time_point(reservoir.get_r_array())
        ro_data.add_time_point(readout.get_readout_array(reservoir))
    print(f'Simulation time: {sw.elapsed_time():.3f} s')

    finish_plots({'reservoir': res_data, 'readout': ro_data}, exp_config)
    return reservoir, readout, {'reservoir': res_data, 'readout': ro_data}


def learn_clamped_feedback(res_config: Optional[dict] = None,
                           ro_config: Optional[dict] = None,
                           exp_config: Optional[dict] = None):
    """
    Sussillo & Abbott style training with clamped feedback:

    1. acclimation with feedback clamped to the target wave
    2. collect rates/targets and fit the readout by regression
    3. record the readout of the trained network (still clamped)
    4. replay the recording as the new clamped target and fit again
    5. test clamped on the replay, then unclamped
    """
    res_config = res_config or reservoir_config
    ro_config = ro_config or readout_config
    exp_config = exp_config or experiment_config
    steps = exp_config['steps']

    rng = np.random.default_rng(exp_config['seed'])
    reservoir = Reservoir(**res_config, rng=rng)
    target_wave = make_target('clamped', exp_config)
    readout = ReadoutClampedFB(target_wave, reservoir.size(), **ro_config, rng=rng)
    lm = LearningModuleRegression(reservoir, readout, target_wave)
    reservoir.set_feedback(readout)

    res_data = TimeSeriesPlotter(min(exp_config['n_track'], reservoir.size()),
                                 'Time series of selected reservoir neurons', reservoir.dt)
    ro_data = TimeSeriesPlotter(readout.size(), 'Time series of readout neurons', reservoir.dt)
    tg_data = TimeSeriesPlotter(readout.size(), 'Target readout', reservoir.dt)
    errors = {}

    sw = Stopwatch()

    # acclimation
    reservoir.step(steps['acclimation'])
    print(f'Acclimation: {sw.restart():.3f} s')

    # clamped learning
    for _ in tqdm(range(steps['learning']), desc='Clamped learning'):
        reservoir.step()
        lm.store()
    errors['learning'] = lm.learn()
    print(f'Clamped learning: {sw.restart():.3f} s | RMS error {errors["learning"][0]:.4f} -> {errors["learning"][1]:.4f}')

    # clamped trial, record what the network produces
    sample = TimeSeries(readout.size())
    for _ in tqdm(range(steps['recording']), desc='Recording'):
        reservoir.step()
        sample.add_time_point(readout.get_readout_array(reservoir))
    print(f'Recording: {sw.restart():.3f} s')

    # clamped learning on the replayed recording
    stored_response = TimeSeriesStream(sample, reservoir.dt, reservoir.t)
    readout.set_target(stored_response)
    lm.set_target(stored_response)
    lm.reset()
    for _ in tqdm(range(steps['learning']), desc='Replay learning'):
        reservoir.step()
        lm.store()
        res_data.add_time_point(reservoir.get_r_array())
        ro_data.add_time_point(readout.get_readout_array(reservoir))
        tg_data.add_time_point(readout.get_target_readout_array(reservoir.t))
        stored_response.next_frame()
    errors['replay'] = lm.learn()
    print(f'Replay learning: {sw.restart():.3f} s | RMS error {errors["replay"][0]:.4f} -> {errors["replay"][1]:.4f}')

    # clamped testing, as long as the recording lasts
    n_test = min(steps['testing'], steps['recording'] - steps['learning'])
    for _ in tqdm(range(max(n_test, 0)), desc='Clamped testing'):
        reservoir.step()
        res_data.add_time_point(reservoir.get_r_array())
        ro_data.add_time_point(readout.get_readout_array(reservoir))
        tg_data.add_time_point(readout.get_target_readout_array(reservoir.t))
        stored_response.next_frame()

    # unclamped testing
    readout.unclamp()
    for _ in tqdm(range(steps['testing']), desc='Unclamped testing'):
        reservoir.step()
        res_data.add_time_point(reservoir.get_r_array())
        ro_data.add_time_point(readout.get_readout_array(reservoir))
    print(f'Testing: {sw.restart():.3f} s')

    plotters = {'reservoir': res_data, 'readout': ro_data, 'target': tg_data}
    finish_plots(plotters, exp_config)
    return reservoir, readout, errors


def learn_rls(res_config: Optional[dict] = None,
              ro_config: Optional[dict] = None,
              learn_config: Optional[dict] = None,
              exp_config: Optional[dict] = None):
    """
    FORCE learning: acclimation, RLS updates every learn_interval steps, then testing without learning.
    """
    res_config = res_config or reservoir_config
    ro_config = ro_config or readout_config
    learn_config = learn_config or rls_config
    exp_config = exp_config or experiment_config
    steps = exp_config['steps']

    rng = np.random.default_rng(exp_config['seed'])
    reservoir = Reservoir(**res_config, rng=rng)
    target_wave = make_target('rls', exp_config)
    readout = ReadoutLearningRLS(target_wave, reservoir.size(), **ro_config, alpha=learn_config['alpha'], rng=rng)
    reservoir.set_feedback(readout)

    res_data = TimeSeriesPlotter(min(exp_config['n_track'], reservoir.size()),
                                 'Time series of selected reservoir neurons', reservoir.dt)
    ro_pre = TimeSeriesPlotter(readout.size(), 'Time series of readout neurons (pre-training)', reservoir.dt)
    ro_post = TimeSeriesPlotter(readout.size(), 'Time series of readout neurons (post-training)', reservoir.dt)
    tg_data = TimeSeriesPlotter(readout.size(), 'Target readout', reservoir.dt)
    err_data = TimeSeriesPlotter(readout.size(), 'Error', reservoir.dt)

    sw = Stopwatch()

    # acclimation
    for _ in range(steps['acclimation']):
        reservoir.step()
        res_data.add_time_point(reservoir.get_r_array())
        ro_post.add_time_point(readout.get_readout_array(reservoir))
        tg_data.add_time_point(readout.get_target_readout_array(reservoir.t))
    print(f'Acclimation: {sw.restart():.3f} s')

    # RLS learning
    for i_step in tqdm(range(steps['rls_learning']), desc='RLS learning'):
        reservoir.step()
        res_data.add_time_point(reservoir.get_r_array())
        tg_data.add_time_point(readout.get_target_readout_array(reservoir.t))
        ro_pre.add_time_point(readout.get_readout_array(reservoir))
        err_data.add_time_point(readout.get_error_array(reservoir))
        if i_step % learn_config['learn_interval'] == 0:
            readout.learn(reservoir)
        ro_post.add_time_point(readout.get_readout_array(reservoir))
    print(f'RLS learning: {sw.restart():.3f} s')

    # testing
    for _ in tqdm(range(steps['testing']), desc='Testing'):
        reservoir.step()
        res_data.add_time_point(reservoir.get_r_array())
        ro_post.add_time_point(readout.get_readout_array(reservoir))
        tg_data.add_time_point(readout.get_target_readout_array(reservoir.t))
        err_data.add_time_point(readout.get_error_array(reservoir))
    print(f'Testing: {sw.restart():.3f} s')

    if steps['testing']:
        test_error = err_data.to_matrix()[-steps['testing']:]
        print(f'Mean |error| during testing = {np.abs(test_error).mean():.4f}')

    plotters = {'reservoir': res_data, 'readout_post': ro_post, 'readout_pre': ro_pre,
                'target': tg_data, 'error': err_data}
    finish_plots(plotters, exp_config)
    return reservoir, readout, plotters


EXPERIMENTS = {
    'reservoir': lambda: simulate_feedback(with_feedback=False),
    'feedback': simulate_feedback,
    'clamped': learn_clamped_feedback,
    'rls': learn_rls,
}


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    experiment = sys.argv[1] if len(sys.argv) > 1 else 'rls'
    if experiment not in EXPERIMENTS:
        raise SystemExit(f'Unknown experiment {experiment!r}, choose from {sorted(EXPERIMENTS)}')

    print(f'Running experiment: {experiment}')
    EXPERIMENTS[experiment]()
