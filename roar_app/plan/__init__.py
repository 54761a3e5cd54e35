"""
Plan evaluation module.

Key classification, reference resolution and the recursive evaluator that
turns each chain's plan subtree into ordered deploy, call and transfer steps.
"""
