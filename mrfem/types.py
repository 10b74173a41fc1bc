# This file is subject to the terms and conditions of the GPLv3 (see file 'LICENSE' as part of this source code package)

u"""
Submodule with all type definitions.
"""

import numpy as np

prob_type = np.float64
logprob_type = np.float64
large_float_type = np.float64
feature_type = np.uint8
label_type = np.int32
index_type = np.int64
count_type = np.uint32
