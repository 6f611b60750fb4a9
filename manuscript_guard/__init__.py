"""
Manuscript guard core package.

The moderation subsystem reads raw manuscript text, splits it into
chapters, drops advertising lines, scores every chapter against
severity-weighted pattern lists and produces a cacheable report.
"""
