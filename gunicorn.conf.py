# use in gunicorn as: env/bin/gunicorn mediavault.api:app -c gunicorn.conf.py
# every worker keeps its own listing cache

# Workers
workers = 4
worker_class = "uvicorn.workers.UvicornWorker"

# Socket
bind = "localhost:5000"

# Logging
# loglevel = 'debug'
# accesslog = '/tmp/mediavault_access_log'
# errorlog =  '/tmp/mediavault_error_log'
