reservoir_config = {
    'dim_reservoir': 1000,
    'p': 0.1,
    'g': 1.5,
    'tau': 0.01,
    'dt': 0.001,
    'integrator': 'rk4',
}

readout_config = {
    'p': 1.0,
    'p_z': 1.0,
    'g': 1.0,
}

rls_config = {
    'alpha': 1.0,  # 1-100, Sussillo & Abbott p. 548
    'learn_interval': 10,  # integration steps between two RLS updates
}

experiment_config = {
    'seed': None,
    'n_track': 5,  # number of reservoir neurons to plot
    'n_readout_random': 5,
    'steps': {
        'free': 1000,
        'acclimation': 500,
        'learning': 1000,
        'recording': 1500,
        'rls_learning': 2000,
        'testing': 500,
    },
    'target': {
        'clamped': {'wave': 'sine', 'period': 0.1},
        'rls': {'wave': 'triangle', 'period': 0.5},
    },
    'do_plot': True,
    'save_folder': None,
}
