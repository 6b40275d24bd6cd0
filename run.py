from forecast import create_app

# Local entry point for the calculation API.
# The frontend points its API base URL at http://localhost:5000/api.
app = create_app()

if __name__ == '__main__':
    # 'debug=True' reloads the server when a source file changes.
    app.run(debug=True)
