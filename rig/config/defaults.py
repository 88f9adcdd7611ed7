#!/usr/bin/env python3
"""
Default configuration values for the RIG toolkit
"""

DEFAULT_CONFIG = {
    'graph': {
        'contact_type': 'Cb',
        'cutoff': 8.0,
    },
    'consensus': {
        'threshold': 0.5,
        'min_score': 0.0,
    },
    'evaluation': {
        'min_seq_sep': 1,
    },
    'io': {
        'casp_target': 0,
        'casp_model': 1,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
}
