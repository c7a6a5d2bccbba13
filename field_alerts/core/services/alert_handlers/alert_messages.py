"""
Pre-rendered alert texts for the alerts that bypass the template engine.
"""

EXTREME_HEAT_SUBJECT = "Extreme Heat Alert - Field {field_id}"

EXTREME_HEAT_BODY = """EXTREME HEAT DETECTED

Field ID: {field_id}
Air temperature: {temperature}°C
Threshold: {threshold}°C
Detected at: {detected_at}

CURRENT METRICS:
- Current air temperature: {temperature}°C
- Extreme heat threshold: {threshold}°C
- Temperature excess: {excess}°C

RECOMMENDED ACTIONS:
1. Increase irrigation frequency to offset higher evapotranspiration
2. Monitor soil moisture closely
3. Inspect crops for heat damage (wilting, leaf scorch)
4. Move field work to cooler hours
5. Make sure field workers stay hydrated

Correlation ID: {correlation_id}"""

FREEZING_SUBJECT = "Freezing Temperature Alert - Field {field_id}"

FREEZING_BODY = """FREEZING TEMPERATURE DETECTED - FROST RISK

Field ID: {field_id}
Air temperature: {temperature}°C
Threshold: {threshold}°C
Detected at: {detected_at}

CURRENT METRICS:
- Current air temperature: {temperature}°C
- Freezing threshold: {threshold}°C
- Degrees below threshold: {excess}°C

RECOMMENDED ACTIONS:
1. URGENT: activate frost protection measures
2. Use sprinkler irrigation if the temperature stays above -2°C
3. Cover sensitive crops with thermal blankets or row covers
4. Keep monitoring the temperature through the night
5. Assess crop damage once the temperature rises above freezing

Correlation ID: {correlation_id}"""


def render_extreme_heat(**values) -> tuple:
    return EXTREME_HEAT_SUBJECT.format(**values), EXTREME_HEAT_BODY.format(**values)


def render_freezing(**values) -> tuple:
    return FREEZING_SUBJECT.format(**values), FREEZING_BODY.format(**values)
