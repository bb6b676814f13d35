# Closed-shell H2O (RHF reference)
h2o = """
0 1
O 0.000000000000000   0.000000000000000   0.143225857166674
H 0.000000000000000  -1.638037301628121  -1.136549142277225
H 0.000000000000000   1.638037301628121  -1.136549142277225
symmetry c1
units bohr
"""

# Triplet CH2 (UHF reference)
ch2 = """
0 3
C 0.000000000000000   0.000000000000000   0.184049869562229
H 0.000000000000000  -1.638037301628121  -1.095725129881670
H 0.000000000000000   1.638037301628121  -1.095725129881670
symmetry c1
units bohr
"""

moldict = {}
moldict["H2O"] = h2o
moldict["CH2"] = ch2
