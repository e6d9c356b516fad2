"""OrbitWatch: CubeSat telemetry dashboard backend with model-assisted risk scoring."""

__version__ = "0.1.0"
