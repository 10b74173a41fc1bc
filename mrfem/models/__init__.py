from . import bernoulli, spatial, mrf
