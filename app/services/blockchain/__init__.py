"""
Blockchain services module.

Chain access for the deposit listener: the AsyncWeb3 transfer provider,
its polling subscription and the timeout wrapper for RPC calls.
"""
