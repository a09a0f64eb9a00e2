from couchqueue_app import create_app

app = create_app()

if __name__ == '__main__':
    # Configuration from environment variables is handled inside the app factory
    host = app.config.get('HOST', '127.0.0.1')
    port = app.config.get('PORT', 5000)
    debug = app.config.get('DEBUG', False)

    app.run(host=host, port=port, debug=debug)
