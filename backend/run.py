from baghchal import create_app, socketio

app = create_app()

if __name__ == '__main__':
    port = app.config['PORT']
    app.logger.info(f"Bagh Chal Game Server running on port {port}")
    app.logger.info(f"Health check: http://localhost:{port}/health")
    socketio.run(app, host='0.0.0.0', port=port, allow_unsafe_werkzeug=True)
