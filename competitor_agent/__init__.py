"""Website comparison agent: CRO/pricing signals and page performance insights."""
