"""CV Perfecto: ATS-oriented LaTeX resume optimization service."""

__version__ = "1.0.0"
