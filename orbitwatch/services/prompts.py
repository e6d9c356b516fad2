"""
prompts.py

Prompt templates for the two AI calls. The numeric thresholds below are guidance handed
to the model; nothing in this package classifies risk with them.
"""
from __future__ import annotations

from orbitwatch.models.domain import RiskScoreInput, TelemetryRecord

RISK_SCORE_PROMPT = """You are an expert in assessing risk based on telemetry data for CubeSats.

Given the following telemetry data, calculate a risk score between 0 and 100,
where 0 indicates no risk and 100 indicates maximum risk. Also, provide a brief explanation
(1-2 sentences) of how you arrived at the risk score.

Telemetry Data:
- Battery Level: {battery_level}%
- Temperature: {temperature}°C
- Communication Status: {communication_status}

Consider the following factors carefully:
- Low battery level (< 20%) significantly increases the risk.
- Very high (> 40°C) or very low (< -10°C) temperatures increase the risk.
- Unstable or lost communication significantly increases the risk. 'Lost' status represents the highest communication risk.

Output the risk score and a concise explanation based ONLY on the provided data and risk factors.
Respond with JSON only: {{"riskScore": number between 0 and 100, "explanation": "one or two sentences"}}.
"""

ANOMALY_GUIDELINES = """Risk category guidelines:
- Orientation: a gyroscope change above 1 deg/s or a magnetometer change above 10 µT between readings indicates attitude instability.
- Power: battery below 3.65 V is critical, below 3.75 V is low; solar panel output below 0.5 W indicates a power generation problem.
- Thermal: internal temperature above 38°C is critical, above 35°C is high; external temperature outside [-30, 50]°C is abnormal.
- Communication: signal strength below -95 dBm is critical, below -90 dBm is weak; packet delay above 300 ms is critical, above 250 ms is high."""

ANOMALY_PROMPT = """You are an expert in satellite anomaly detection. Based on the telemetry data for satellite {satellite_id},
explain the anomaly risk score.

Telemetry Snapshot:
- Timestamp: {timestamp}
- Battery Voltage: {battery_voltage} V
- Solar Panel Output: {solar_panel_output} W
- Internal Temperature: {internal_temperature} °C
- External Temperature: {external_temperature} °C
- Gyroscope (X,Y,Z): {gyro_x}, {gyro_y}, {gyro_z} deg/s
- Magnetometer (X,Y,Z): {mag_x}, {mag_y}, {mag_z} µT
- Communication Signal Strength: {signal_strength} dBm
- Communication Packet Delay: {packet_delay} ms

{guidelines}

Provide:
1. A concise overall "explanation" (2-3 sentences) of the factors contributing to the current anomaly risk.
2. A "breakdown" object estimating the contribution (0-100 each) of 'thermal', 'comm' (communication),
   'power' and 'orientation' to the risk. The values may sum roughly to 100, or highlight the primary risk factor.

Respond with JSON only, in this format:
{{"explanation": "string", "breakdown": {{"thermal": number, "comm": number, "power": number, "orientation": number}}}}

If the telemetry is insufficient or ambiguous for a confident analysis, say so in the explanation and use 0 for every breakdown value.
"""


def render_risk_score_prompt(inp: RiskScoreInput) -> str:
    return RISK_SCORE_PROMPT.format(
        battery_level=inp.battery_level,
        temperature=inp.temperature,
        communication_status=inp.communication_status,
    )


def render_anomaly_prompt(satellite_id: str, record: TelemetryRecord) -> str:
    comm = record.communication_logs
    return ANOMALY_PROMPT.format(
        satellite_id=satellite_id,
        timestamp=record.timestamp.isoformat() if record.timestamp else "unknown",
        battery_voltage=record.battery_voltage,
        solar_panel_output=record.solar_panel_output,
        internal_temperature=record.internal_temperature,
        external_temperature=record.external_temperature,
        gyro_x=record.gyroscope.x,
        gyro_y=record.gyroscope.y,
        gyro_z=record.gyroscope.z,
        mag_x=record.magnetometer.x,
        mag_y=record.magnetometer.y,
        mag_z=record.magnetometer.z,
        signal_strength=comm.signal_strength,
        packet_delay=comm.packet_delay,
        guidelines=ANOMALY_GUIDELINES,
    )
