app_name = "service_scheduling"
app_title = "Service Scheduling"
app_publisher = "Sebastian Ortiz Valencia"
app_description = "Motor de disponibilidad para agendar citas en negocios de servicios"
app_email = "sebastianortiz989@gmail.com"
app_license = "mit"

# Apps
# ------------------

# required_apps = []

# Document Events
# ---------------
# Service Organization / Service Employee validan su horario en el controller
# (doctype/*/*.py); no se necesitan doc_events.

# Scheduled Tasks
# ---------------
# El motor no tiene estado: no hay tareas programadas.


# Automatically update python controller files with type annotations for this app.
# export_python_type_annotations = True
