'''
Exceptions raised while processing music files
'''



class PipelineError(Exception):
    '''
    Base class for all errors raised by the pipeline.

    Track path and stage name are filled in by the pipeline while the error
    propagates, so that the failure can be located.
    '''

    def __init__(self, message, track=None, stage=None):
        super().__init__(message)
        self.message = message
        self.track = track
        self.stage = stage


    def __str__(self):
        location = []
        if self.track is not None:
            location.append('track {!r}'.format(self.track))
        if self.stage is not None:
            location.append('stage {!r}'.format(self.stage))
        if not location:
            return self.message
        return '{} [{}]'.format(self.message, ', '.join(location))



class NotAnAudioFile(PipelineError):
    '''Raised when input file does not have a supported audio extension'''



class MetadataParseError(PipelineError):
    '''Raised when a directory metadata document can not be parsed'''

    def __init__(self, message, filename, **ka):
        super().__init__(
            'Error reading {}: {}'.format(filename, message),
            **ka
        )
        self.filename = filename



class ExternalToolError(PipelineError):
    '''Raised when a transcoding or tagging tool fails'''

    def __init__(self, command, returncode, diagnostics=(), **ka):
        self.command = list(command)
        self.returncode = returncode
        self.diagnostics = list(diagnostics)
        program = self.command[0] if self.command else 'command'
        if returncode is None:
            message = '{} failed'.format(program)
        else:
            message = '{} exited with code {}'.format(program, returncode)
        if self.diagnostics:
            message += '\n' + '\n'.join('  ' + line for line in self.diagnostics)
        super().__init__(message, **ka)



class FileSystemError(PipelineError):
    '''Raised on I/O faults other than a missing file'''
