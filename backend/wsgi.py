from shopdesk import create_app

app = create_app()
