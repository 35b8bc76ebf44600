"""TTS feedback services.

- Classifier Service: labels each reported issue as a text or TTS problem
- Collection Service: tester profiles, issue submission, filtering and CSV export
- Analytics Service: windowed statistics, rankings, trends and summaries

Services share models and storage through ttsfeedback.shared and never
call each other over HTTP. The classifier is imported as a library.
"""
