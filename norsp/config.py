"""
config.py: Validated options for a linear response calculation.
"""

from .errors import ConfigurationError


class rspconfig(object):
    """
    The options of one response calculation, validated once at construction.

    Attributes
    ----------
    print_level : int
        verbosity; >= 1 prints settings and results, >= 2 solver iterations, >= 10 all intermediates
    solver : str
        iterative solver algorithm ('diis', 'jacobi', or 'exact')
    maxiter : int
        maximum number of solver iterations
    conv : int
        convergence exponent; the residual threshold is 10^(-conv)
    max_diis : int
        maximum number of DIIS vectors (0 disables DIIS)
    start_diis : int
        first iteration at which DIIS extrapolation is applied
    hamiltonian : str
        orbital Hessian approximation ('rpa' or 'tda')
    spin : str
        spin symmetry of the perturbation ('singlet' or 'triplet')
    save : int
        0 = nothing, 1 = MO-basis files, 2 = MO- and AO-basis files
    read : int
        0 = no restart, 1 = MO-basis files, 2 = AO-basis files transformed to MO
    prefix : str or None
        path prefix for all written and read files
    do_orthogonalization_canonical : bool
        form pseudo-inverses of the AO and MO overlaps
    mask_ediff_mo : bool
        zero the energy differences outside the fragment response space
    mask_form_results_mo : bool
        restrict the property contraction to the fragment response space
    frgm_response_idx : int
        0 or negative = all fragments, k > 0 = occupied space of fragment k only
    denominator_threshold : float
        smallest acceptable |ediff -/+ omega| in the uncoupled guess
    """

    valid_solvers = ['diis', 'jacobi', 'exact']
    valid_hamiltonians = ['rpa', 'tda']
    valid_spins = ['singlet', 'triplet']
    valid_levels = [0, 1, 2]

    # option name -> attribute name
    _params = {
        'print_level': 'print_level',
        'solver': 'solver',
        'maxiter': 'maxiter',
        'conv': 'conv',
        'max_diis': 'max_diis',
        'start_diis': 'start_diis',
        'hamiltonian': 'hamiltonian',
        'spin': 'spin',
        'save': 'save',
        'read': 'read',
        'prefix': 'prefix',
        '_do_orthogonalization_canonical': 'do_orthogonalization_canonical',
        '_mask_ediff_mo': 'mask_ediff_mo',
        '_mask_form_results_mo': 'mask_form_results_mo',
        '_frgm_response_idx': 'frgm_response_idx',
        'denominator_threshold': 'denominator_threshold',
    }

    def __init__(self, **kwargs):
        self.print_level = int(kwargs.pop('print_level', 1))

        solver = kwargs.pop('solver', 'diis').lower()
        if solver not in self.valid_solvers:
            raise ConfigurationError("%s is not an allowed solver." % (solver))
        self.solver = solver

        self.maxiter = int(kwargs.pop('maxiter', 60))
        if self.maxiter < 1:
            raise ConfigurationError("maxiter must be at least 1.")
        self.conv = int(kwargs.pop('conv', 8))

        self.max_diis = int(kwargs.pop('max_diis', 8))
        if self.max_diis < 0:
            raise ConfigurationError("max_diis cannot be negative.")
        self.start_diis = int(kwargs.pop('start_diis', 1))

        hamiltonian = kwargs.pop('hamiltonian', 'rpa').lower()
        if hamiltonian not in self.valid_hamiltonians:
            raise ConfigurationError("%s is not an allowed orbital Hessian." % (hamiltonian))
        self.hamiltonian = hamiltonian

        spin = kwargs.pop('spin', 'singlet').lower()
        if spin not in self.valid_spins:
            raise ConfigurationError("%s is not an allowed operator spin type." % (spin))
        self.spin = spin

        self.save = int(kwargs.pop('save', 0))
        if self.save not in self.valid_levels:
            raise ConfigurationError("save must be one of %s." % (self.valid_levels))
        self.read = int(kwargs.pop('read', 0))
        if self.read not in self.valid_levels:
            raise ConfigurationError("read must be one of %s." % (self.valid_levels))
        self.prefix = kwargs.pop('prefix', None)

        for name in ['_do_orthogonalization_canonical', '_mask_ediff_mo', '_mask_form_results_mo']:
            value = kwargs.pop(name, False)
            if not isinstance(value, bool):
                raise ConfigurationError("%s must be True or False, got %r." % (name, value))
            setattr(self, self._params[name], value)
        self.frgm_response_idx = int(kwargs.pop('_frgm_response_idx', 0))

        self.denominator_threshold = float(kwargs.pop('denominator_threshold', 1.0e-10))
        if self.denominator_threshold < 0.0:
            raise ConfigurationError("denominator_threshold cannot be negative.")

        if kwargs:
            raise ConfigurationError("Unknown options: %s" % (", ".join(sorted(kwargs))))

    def has_param(self, name):
        return name in self._params and getattr(self, self._params[name]) is not None

    def get_param(self, name):
        if name not in self._params:
            raise ConfigurationError("%s is not a known option." % (name))
        return getattr(self, self._params[name])

    @property
    def file_prefix(self):
        return self.prefix if self.prefix is not None else ""

    @property
    def conv_threshold(self):
        return 10.0**(-self.conv)
