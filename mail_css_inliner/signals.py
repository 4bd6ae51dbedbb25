import django.dispatch

# Sent with message=<email.message.Message>, email=<EmailMessage> right
# before a message is handed to the delivering backend.
message_sending = django.dispatch.Signal()
