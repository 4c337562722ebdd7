"""Row transition rules for the momentum and profit-taking strategies."""
