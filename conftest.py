# Puts the repository root on sys.path so the flat modules import under pytest.
